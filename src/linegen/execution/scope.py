"""
Per-unit generation state threaded through node evaluation.

A Scope holds the variable bindings, the registered substitution groups and
the errors collected while one template is evaluated. It is created by the
caller for each unit and passed explicitly to every node.
"""

import logging
import re
from collections import ChainMap
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field

from linegen.core.types import Value
from linegen.exceptions import error_message
from linegen.expressions import Evaluator, ExpressionEvaluator, as_string
from linegen.substitution import All, First, MatchMode, Result, Rule

logger = logging.getLogger(__name__)

# Whole-token placeholder for a loop variable inside its block body
PLACEHOLDER_PATTERN = r"(?<![A-Za-z0-9_])_{name}(?![A-Za-z0-9_])"


@dataclass
class _Frame:
    """Substitution groups registered at one block nesting level."""

    groups: All = field(default_factory=All)
    current: First = field(default_factory=First)

    def __post_init__(self):
        self.groups.append(self.current)


class Scope:
    """
    Mutable generation state for one template unit.

    Substitution groups are kept per frame. The outermost frame belongs to the
    unit; each block pass opens a nested frame (see nested()) whose groups and
    variables disappear when the pass ends. Lines are filtered by the innermost
    frame first, then outward, and within a frame in registration order.
    """

    def __init__(
        self,
        bindings: Mapping[str, Value] | None = None,
        evaluator: Evaluator | None = None,
    ):
        """
        Initialize the scope.

        Params:
            bindings: Initial variable bindings; copied, never modified
            evaluator: Expression evaluator, defaults to ExpressionEvaluator
        """
        self.bindings: ChainMap = ChainMap(dict(bindings or {}))
        self.evaluator: Evaluator = evaluator or ExpressionEvaluator()
        self._frames: list[_Frame] = [_Frame()]
        self._errors: list[str] = []

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def groups(self) -> list[First]:
        """Non-empty substitution groups in application order."""
        return [
            group
            for frame in reversed(self._frames)
            for group in frame.groups.members
            if not group.is_empty()
        ]

    @property
    def depth(self) -> int:
        return len(self._frames) - 1

    def error(self, message: str) -> None:
        logger.debug("Template error: %s", message)
        self._errors.append(message)

    def new_substitution_group(self) -> None:
        """Start a new group unless the current one is still empty."""
        frame = self._frames[-1]
        if not frame.current.is_empty():
            frame.current = First()
            frame.groups.append(frame.current)

    def add_substitution(self, mode: MatchMode, match: str, replacement: str) -> None:
        """Add a rule to the current group of the innermost frame."""
        self._frames[-1].current.append(Rule(mode, match, replacement))

    def apply_substitutions(self, text: str) -> Result:
        """
        Filter a line through all active substitution groups.

        A pattern that is invalid or cannot be computed fails the whole line: the error is recorded and
        the line is replaced by a diagnostic.

        Params:
            text: Line text

        Returns:
            The final result; hit is True if any rule changed the line
        """
        result = Result.initial(text)
        try:
            for frame in reversed(self._frames):
                result = frame.groups.apply(self, result)
        except Exception as e:
            self.error(str(e) or type(e).__name__)
            return Result(False, error_message(e))
        return result

    @contextmanager
    def nested(self, variable: str | None = None, value: Value = None) -> Iterator["Scope"]:
        """
        Open a nested binding layer and substitution frame.

        Params:
            variable: Loop variable to bind in the new layer, if any
            value: Value of the loop variable

        Yields:
            This scope, with the nested layer active
        """
        self.bindings = self.bindings.new_child()
        self._frames.append(_Frame())
        if variable:
            self.bindings[variable] = value
            self.add_substitution(
                MatchMode.REGEX,
                PLACEHOLDER_PATTERN.format(name=re.escape(variable)),
                f"`{as_string(value)}`",
            )
            self.new_substitution_group()
        try:
            yield self
        finally:
            self._frames.pop()
            self.bindings = self.bindings.parents
