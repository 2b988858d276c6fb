"""
Pattern/replacement rules and their combinators.

A Rule replaces every non-overlapping match of its pattern in a line. Rules are
combined by First (the first rule that hits wins) and All (every member applies
in sequence). A Scope keeps one All of First groups per frame.
"""

import re
from abc import ABC, abstractmethod
from collections import ChainMap
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from linegen.exceptions import ERROR_MARKER, describe_error
from linegen.expressions import string_or_eval

if TYPE_CHECKING:
    from linegen.execution.scope import Scope


class MatchMode(Enum):
    """How a match pattern is turned into a regular expression."""

    PLAIN = "plain"
    REGEX = "regex"

    def compile(self, pattern: str) -> re.Pattern:
        """Compile the pattern, quoting it verbatim in PLAIN mode."""
        if self is MatchMode.PLAIN:
            return re.compile(re.escape(pattern))
        return re.compile(pattern)


@dataclass(frozen=True)
class Result:
    """
    Outcome of applying a substitution stage.

    Params:
        hit: Whether any transformation has fired so far along the chain
        text: Current candidate output
    """

    hit: bool
    text: str

    @classmethod
    def initial(cls, text: str) -> "Result":
        """Start a chain for a line; nothing has fired yet."""
        return cls(False, text)

    def as_hit(self, text: str | None = None) -> "Result":
        return Result(True, self.text if text is None else text)

    def as_miss(self, text: str | None = None) -> "Result":
        """Keep the incoming hit flag, optionally with new text."""
        return replace(self, text=self.text if text is None else text)

    def force_miss(self) -> "Result":
        return Result(False, self.text)

    def rejoin(self, original: "Result") -> "Result":
        """Combine with the hit flag of the result this stage started from."""
        return Result(original.hit or self.hit, self.text)

    def __str__(self) -> str:
        return f"{'hit' if self.hit else 'miss'}:{self.text}"


class Substitution(ABC):
    """Base class for rules and combinators."""

    def apply(self, scope: "Scope", value: "Result | str") -> Result:
        """
        Apply this substitution to a line or an intermediate result.

        Params:
            scope: Scope providing bindings and the evaluator
            value: Line text or the result of a previous stage

        Returns:
            The result after this stage
        """
        result = Result.initial(value) if isinstance(value, str) else value
        return self.apply_result(scope, result)

    @abstractmethod
    def apply_result(self, scope: "Scope", result: Result) -> Result:
        pass

    @abstractmethod
    def is_empty(self) -> bool:
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def __str__(self) -> str:
        return f"{type(self).__name__}[{self.describe()}]"


class Rule(Substitution):
    """A single pattern/replacement rule."""

    def __init__(self, mode: MatchMode, match: str, replacement: str):
        """
        Initialize the rule.

        Params:
            mode: PLAIN for verbatim patterns, REGEX for regular expressions
            match: Pattern text; ``!expr`` computes the pattern from an expression
            replacement: Replacement text; ``!expr`` is evaluated once per match
                with ``_0`` (whole match) and ``_1``..``_n`` (groups) bound
        """
        self.mode = mode
        self.match = match
        self.replacement = replacement

    def apply_result(self, scope: "Scope", result: Result) -> Result:
        # Pattern errors propagate; Scope.apply_substitutions reports them
        pattern = self.mode.compile(string_or_eval(scope.evaluator, scope.bindings, self.match))
        text = result.text
        parts: list[str] = []
        start = 0
        found = False
        for m in pattern.finditer(text):
            found = True
            parts.append(text[start : m.start()])
            captures = {f"_{g}": m.group(g) or "" for g in range(pattern.groups + 1)}
            try:
                parts.append(
                    string_or_eval(scope.evaluator, ChainMap(captures, scope.bindings), self.replacement)
                )
            except Exception as e:
                return result.as_miss(f"{ERROR_MARKER} {self.replacement}: {describe_error(e)}")
            start = m.end()
        if not found:
            return result.as_miss()
        parts.append(text[start:])
        return result.as_hit("".join(parts))

    def is_empty(self) -> bool:
        return False

    def describe(self) -> str:
        return f"{self.mode.value}:{self.match}->{self.replacement}"


class First(Substitution):
    """Group of substitutions where the first one that hits wins."""

    def __init__(self, members: list[Substitution] | None = None):
        self.members: list[Substitution] = list(members or [])

    def append(self, *members: Substitution) -> None:
        self.members.extend(members)

    def apply_result(self, scope: "Scope", result: Result) -> Result:
        if not self.members:
            return result.as_miss()
        current = result.force_miss()
        for member in self.members:
            current = member.apply_result(scope, current)
            if current.hit:
                break
        return current.rejoin(result)

    def is_empty(self) -> bool:
        return not self.members

    def describe(self) -> str:
        return ",".join(str(m) for m in self.members)


class All(Substitution):
    """Chain of substitutions, each applied to the previous one's output."""

    def __init__(self, members: list[Substitution] | None = None):
        self.members: list[Substitution] = list(members or [])

    def append(self, *members: Substitution) -> None:
        self.members.extend(members)

    def apply_result(self, scope: "Scope", result: Result) -> Result:
        for member in self.members:
            result = member.apply_result(scope, result)
        return result

    def is_empty(self) -> bool:
        return not self.members

    def describe(self) -> str:
        return ",".join(str(m) for m in self.members)
