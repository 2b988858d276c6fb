"""
Template builder.

Reads template source lines once and builds the node tree. Each source line
yields exactly one node, appended to the innermost open block (or the root).
The builder also tracks the pending match of a ``=``/``~`` command until the
following replacement and the output file name override.
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from linegen.commands import Command, CommandParser, CommandType, LoopHeader
from linegen.execution import Scope
from linegen.substitution import MatchMode
from linegen.tree import (
    BlockNode,
    ErrorNode,
    EvalNode,
    InsertNode,
    LineNode,
    ListNode,
    Node,
    OperationNode,
)

logger = logging.getLogger(__name__)

MSG_REPLACEMENT_WITHOUT_MATCH = "replacement without match"
MSG_MATCH_WITHOUT_REPLACEMENT = "match without replacement"
MSG_UNBALANCED_CLOSE = "unbalanced block close"
MSG_UNCLOSED_BLOCK = "unbalanced block: not closed"
MSG_UNKNOWN_COMMAND = "unknown command"

# Built-in groups registered by "normalize spaces", as (pattern, replacement)
NORMALIZE_SPACES_RULES = (
    (r"(?<=\S)\s{2,}", "` `"),
    (r"\s+$", ""),
    (r"(?<=\S)\s+(?=[,;)])", ""),
    (r"(?<=[(])\s+", ""),
)


@dataclass(frozen=True)
class PendingMatch:
    """Match command waiting for its replacement."""

    mode: MatchMode
    pattern: str

    def __str__(self) -> str:
        return ("=" if self.mode is MatchMode.PLAIN else "~") + self.pattern


@dataclass(frozen=True)
class ParsedTemplate:
    """
    Result of parsing a template.

    Params:
        root: Root node of the template tree
        filename: Output path override relative to the default output's
            directory, None if the template has no filename directive
    """

    root: ListNode
    filename: PurePosixPath | None = None


def register_substitution(mode: MatchMode, pattern: str, replacement: str):
    """Build a scope callback that opens a new group holding one rule."""

    def register(scope: Scope) -> None:
        scope.new_substitution_group()
        scope.add_substitution(mode, pattern, replacement)

    return register


def normalize_spaces(scope: Scope) -> None:
    """Register the whitespace normalization groups."""
    for pattern, replacement in NORMALIZE_SPACES_RULES:
        scope.new_substitution_group()
        scope.add_substitution(MatchMode.REGEX, pattern, replacement)
    scope.new_substitution_group()


NORMALIZERS = {
    "spaces": normalize_spaces,
}


class Template:
    """Single-pass builder turning template lines into a node tree."""

    def __init__(self, parser: CommandParser | None = None):
        self.parser = parser or CommandParser()
        self.filename: PurePosixPath | None = None
        self._stack: list[ListNode | BlockNode] = []
        self._pending: PendingMatch | None = None

    def parse(self, lines: Iterable[str]) -> ListNode:
        """
        Build the tree for a template.

        Params:
            lines: Source lines; trailing line terminators are ignored

        Returns:
            The root ListNode
        """
        root = ListNode("<root>")
        self._stack = [root]
        self._pending = None
        self.filename = None

        for line in lines:
            node = self._to_node(line.rstrip("\r\n"))
            self._stack[-1].append(node)
            if isinstance(node, BlockNode):
                self._stack.append(node)

        if self._pending is not None:
            logger.warning("Ignoring match without replacement at end of template: %s", self._pending)
            self._pending = None
        if len(self._stack) > 1:
            open_blocks = ", ".join(str(b.loop) for b in self._stack[1:])
            root.append(ErrorNode(f"{MSG_UNCLOSED_BLOCK}: {open_blocks}"))
        self._stack = [root]
        return root

    def parse_file(self, path: Path, encoding: str = "utf-8") -> ListNode:
        """Build the tree for a template file."""
        with open(path, encoding=encoding) as f:
            return self.parse(f)

    def output_file(self, default_out: Path) -> Path:
        """
        Resolve the output path.

        Params:
            default_out: Output path used when no filename directive was given

        Returns:
            The filename override resolved against the default's directory,
            or the default itself
        """
        if self.filename is None:
            return default_out
        return Path(os.path.normpath(default_out.parent.joinpath(*self.filename.parts)))

    def _to_node(self, line: str) -> Node:
        command = self.parser.classify(line)
        if command is None:
            return LineNode(line)
        return self._command_node(command)

    def _command_node(self, command: Command) -> Node:
        kind = command.command_type

        if kind is CommandType.BLANK:
            return OperationNode("<blank>")
        if kind is CommandType.COMMENT:
            return OperationNode(command.text)

        if kind is CommandType.REPLACEMENT:
            if self._pending is None:
                return ErrorNode(f"{MSG_REPLACEMENT_WITHOUT_MATCH}: {command.argument}")
            match, self._pending = self._pending, None
            return OperationNode(
                f"{match}->{command.argument}",
                register_substitution(match.mode, match.pattern, command.argument),
            )

        if kind in (CommandType.MATCH_PLAIN, CommandType.MATCH_REGEX):
            mode = MatchMode.PLAIN if kind is CommandType.MATCH_PLAIN else MatchMode.REGEX
            if self._pending is not None:
                pending, self._pending = self._pending, None
                return ErrorNode(f"{MSG_MATCH_WITHOUT_REPLACEMENT}: {pending}")
            self._pending = PendingMatch(mode, command.argument)
            return OperationNode(str(self._pending))

        if kind is CommandType.BLOCK_OPEN:
            return BlockNode(command.loop or LoopHeader())
        if kind is CommandType.BLOCK_CLOSE:
            if len(self._stack) <= 1:
                return ErrorNode(MSG_UNBALANCED_CLOSE)
            return self._pop()

        if kind is CommandType.EVAL:
            return EvalNode(command.argument)
        if kind is CommandType.INSERT:
            return InsertNode(command.argument, command.indent)

        if kind is CommandType.NORMALIZE:
            callbacks = [NORMALIZERS[option] for option in command.options]
            return OperationNode(command.text, _chain(callbacks))

        if kind is CommandType.FILENAME:
            self.filename = PurePosixPath(command.argument)
            logger.debug("Output file name set to %s", self.filename)
            return OperationNode(command.text)

        return ErrorNode(f"{MSG_UNKNOWN_COMMAND}: {command.text}")

    def _pop(self) -> Node:
        block = self._stack.pop()
        return OperationNode(f"pop {block.describe()}")


def _chain(callbacks):
    def run(scope: Scope) -> None:
        for callback in callbacks:
            callback(scope)

    return run


def parse_template(lines: Iterable[str]) -> ParsedTemplate:
    """
    Convenience function to parse a template.

    Params:
        lines: Source lines

    Returns:
        The root node together with the output file name override
    """
    template = Template()
    root = template.parse(lines)
    return ParsedTemplate(root, template.filename)
