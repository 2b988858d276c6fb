"""
Parser for template command lines.

A command line is any line whose first non-blank characters are the trigger
``///``. Everything else is plain text copied to the output. This module
recognizes command lines and classifies their body into exactly one command
kind.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

TRIGGER = "///"
IDENT = r"[a-zA-Z_][a-zA-Z0-9_]*"

# Option words accepted by the normalize directive
NORMALIZE_OPTIONS = ("spaces",)


class CommandType(Enum):
    """Kind of a command line."""

    BLANK = "blank"
    COMMENT = "comment"
    MATCH_PLAIN = "match-plain"
    MATCH_REGEX = "match-regex"
    REPLACEMENT = "replacement"
    EVAL = "eval"
    INSERT = "insert"
    BLOCK_OPEN = "block-open"
    BLOCK_CLOSE = "block-close"
    FILENAME = "filename"
    NORMALIZE = "normalize"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LoopHeader:
    """
    Header of a block: ``<<<[/] [ident:] [expression]``.

    Params:
        variable: Name bound to each element, None for anonymous blocks
        expression: Iterable expression, None for a block evaluated once
        collapse: True if ``/`` was given; repeated identical passes are dropped
    """

    variable: str | None = None
    expression: str | None = None
    collapse: bool = False

    def __str__(self) -> str:
        text = "<<<" + ("/" if self.collapse else "")
        if self.variable:
            text += f" {self.variable}:"
        if self.expression:
            text += f" {self.expression}"
        return text


@dataclass(frozen=True)
class Command:
    """
    A classified command line.

    Params:
        command_type: Kind of the command
        text: Trimmed command body (without trigger and indentation)
        indent: Whitespace preceding the trigger
        argument: Pattern, expression or path carried by the command
        loop: Loop header for block-open commands
        options: Option words for normalize commands
    """

    command_type: CommandType
    text: str
    indent: str = ""
    argument: str | None = None
    loop: LoopHeader | None = None
    options: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return f"{TRIGGER}{self.text}"


class CommandParser:
    """Classifier for template command lines."""

    COMMAND_PATTERN = re.compile(r"(?P<indent>\s*)///(?P<body>.*)")

    # "--" alone or followed by anything but ">" (which would be a replacement)
    COMMENT_PATTERN = re.compile(r"--(?:$|[^>].*)")
    REPLACEMENT_PATTERN = re.compile(r"--?>(?P<expr>.*)")
    MATCH_PLAIN_PATTERN = re.compile(r"=(?P<pattern>.*)")
    MATCH_REGEX_PATTERN = re.compile(r"~(?P<pattern>.*)")
    BLOCK_OPEN_PATTERN = re.compile(
        r"<<<(?P<opt>/*)\s*(?:(?P<ident>" + IDENT + r")\s*:)?\s*(?P<expr>.*?)\s*"
    )
    BLOCK_CLOSE_PATTERN = re.compile(r">>>")
    EVAL_PATTERN = re.compile(r"!(?P<expr>.*\S.*)")
    INSERT_PATTERN = re.compile(r">(?P<expr>.*\S.*)")
    NORMALIZE_PATTERN = re.compile(
        r"normali[sz]e(?P<options>(?:\s+(?:" + "|".join(NORMALIZE_OPTIONS) + r"))+)"
    )
    FILENAME_PATTERN = re.compile(r"filename\s+(?P<path>\S+)")

    def is_command(self, line: str) -> bool:
        """Check whether a line carries the command trigger."""
        return self.COMMAND_PATTERN.fullmatch(line) is not None

    def classify(self, line: str) -> Command | None:
        """
        Classify a source line.

        The body is tested against the command grammar in a fixed order of
        precedence; the first matching kind wins, and anything unmatched is
        UNKNOWN.

        Params:
            line: Source line without line terminator

        Returns:
            The classified Command, or None if the line is plain text
        """
        match = self.COMMAND_PATTERN.fullmatch(line)
        if match is None:
            return None
        indent = match.group("indent")
        text = match.group("body").strip()

        if not text:
            return Command(CommandType.BLANK, text, indent)

        if self.COMMENT_PATTERN.fullmatch(text):
            return Command(CommandType.COMMENT, text, indent)

        m = self.REPLACEMENT_PATTERN.fullmatch(text)
        if m:
            return Command(
                CommandType.REPLACEMENT, text, indent, argument=m.group("expr").strip()
            )

        m = self.MATCH_PLAIN_PATTERN.fullmatch(text)
        if m:
            return Command(
                CommandType.MATCH_PLAIN, text, indent, argument=m.group("pattern").strip()
            )

        m = self.MATCH_REGEX_PATTERN.fullmatch(text)
        if m:
            return Command(
                CommandType.MATCH_REGEX, text, indent, argument=m.group("pattern").strip()
            )

        m = self.BLOCK_OPEN_PATTERN.fullmatch(text)
        if m:
            loop = LoopHeader(
                variable=m.group("ident"),
                expression=m.group("expr") or None,
                collapse="/" in m.group("opt"),
            )
            return Command(CommandType.BLOCK_OPEN, text, indent, loop=loop)

        if self.BLOCK_CLOSE_PATTERN.fullmatch(text):
            return Command(CommandType.BLOCK_CLOSE, text, indent)

        m = self.EVAL_PATTERN.fullmatch(text)
        if m:
            return Command(CommandType.EVAL, text, indent, argument=m.group("expr").strip())

        m = self.INSERT_PATTERN.fullmatch(text)
        if m:
            return Command(CommandType.INSERT, text, indent, argument=m.group("expr").strip())

        m = self.NORMALIZE_PATTERN.fullmatch(text)
        if m:
            return Command(
                CommandType.NORMALIZE, text, indent, options=tuple(m.group("options").split())
            )

        m = self.FILENAME_PATTERN.fullmatch(text)
        if m:
            return Command(CommandType.FILENAME, text, indent, argument=m.group("path"))

        return Command(CommandType.UNKNOWN, text, indent)


def parse_command(line: str) -> Command | None:
    """
    Convenience function to classify a single line.

    Params:
        line: Source line without line terminator

    Returns:
        The classified Command, or None if the line is plain text
    """
    parser = CommandParser()
    return parser.classify(line)
