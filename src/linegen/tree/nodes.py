"""
Template tree nodes and their line-production protocol.

Every node type provides ``lines(scope)``, a lazy iterator over output lines.
Evaluation is depth-first and left-to-right, and nodes may mutate the scope:
a rule registered by an OperationNode affects every LineNode evaluated after
it, never one before it.
"""

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from linegen.commands import LoopHeader
from linegen.exceptions import describe_error
from linegen.execution import Scope
from linegen.expressions import as_string

logger = logging.getLogger(__name__)

# Only CR, LF and CRLF end a line; other Unicode separators stay in the text
LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass
class ListNode:
    """Ordered sequence of child nodes; used for the template root."""

    description: str = "<root>"
    children: list["Node"] = field(default_factory=list)

    def append(self, node: "Node") -> None:
        self.children.append(node)

    def lines(self, scope: Scope) -> Iterator[str]:
        for child in self.children:
            yield from child.lines(scope)

    def describe(self) -> str:
        return f"List[{self.description}]"

    def dump(self, indent: str = "") -> list[str]:
        """Render this subtree as indented descriptions, one node per line."""
        return _dump(self, indent)


@dataclass(frozen=True)
class LineNode:
    """Literal text line, filtered through the active substitutions."""

    text: str

    def lines(self, scope: Scope) -> Iterator[str]:
        yield scope.apply_substitutions(self.text).text

    def describe(self) -> str:
        return f"Line[{self.text}]"


@dataclass
class BlockNode:
    """
    Loop over a child subtree.

    Without an expression the body is evaluated exactly once. With one, the
    body is evaluated once per element, the element bound to the loop
    variable (if named) in a nested scope layer. Collapsing blocks drop a pass
    whose output equals the output of the pass before it.
    """

    loop: LoopHeader
    children: list["Node"] = field(default_factory=list)

    def append(self, node: "Node") -> None:
        self.children.append(node)

    def lines(self, scope: Scope) -> Iterator[str]:
        if self.loop.expression is None:
            with scope.nested():
                yield from self._body(scope)
            return

        try:
            value = scope.evaluator.evaluate(scope.bindings, self.loop.expression)
        except Exception as e:
            scope.error(f"{self.loop}: {describe_error(e)}")
            return

        previous: list[str] | None = None
        for element in _iterate(value):
            with scope.nested(self.loop.variable, element):
                if not self.loop.collapse:
                    yield from self._body(scope)
                    continue
                output = list(self._body(scope))
            if output == previous:
                logger.debug("Collapsing repeated pass of %s", self.loop)
                continue
            previous = output
            yield from output

    def _body(self, scope: Scope) -> Iterator[str]:
        for child in self.children:
            yield from child.lines(scope)

    def describe(self) -> str:
        return f"Block[{self.loop}]"


@dataclass(frozen=True)
class EvalNode:
    """Expression evaluated for its effect on the bindings only."""

    expression: str

    def lines(self, scope: Scope) -> Iterator[str]:
        try:
            scope.evaluator.execute(scope.bindings, self.expression)
        except Exception as e:
            scope.error(f"!{self.expression}: {describe_error(e)}")
        return iter(())

    def describe(self) -> str:
        return f"Eval[{self.expression}]"


@dataclass(frozen=True)
class InsertNode:
    """Expression whose value is emitted as lines with the command's indentation."""

    expression: str
    indent: str = ""

    def lines(self, scope: Scope) -> Iterator[str]:
        try:
            value = scope.evaluator.evaluate(scope.bindings, self.expression)
        except Exception as e:
            scope.error(f">{self.expression}: {describe_error(e)}")
            return iter(())
        return iter([self.indent + line for line in _split_lines(as_string(value))])

    def describe(self) -> str:
        return f"Insert[{self.expression}]"


@dataclass(frozen=True)
class OperationNode:
    """
    Callback run against the live scope; emits nothing.

    A node without callback is a no-op kept in the tree so every source line
    has a node.
    """

    description: str
    callback: Callable[[Scope], None] | None = None

    def lines(self, scope: Scope) -> Iterator[str]:
        if self.callback is not None:
            try:
                self.callback(scope)
            except Exception as e:
                scope.error(f"{self.description}: {describe_error(e)}")
        return iter(())

    def describe(self) -> str:
        return f"{'Operation' if self.callback else 'Nop'}[{self.description}]"


@dataclass(frozen=True)
class ErrorNode:
    """Structural error found while building; recorded when evaluated."""

    message: str

    def lines(self, scope: Scope) -> Iterator[str]:
        scope.error(self.message)
        return iter(())

    def describe(self) -> str:
        return f"Error[{self.message}]"


Node = ListNode | LineNode | BlockNode | EvalNode | InsertNode | OperationNode | ErrorNode


def _split_lines(text: str) -> list[str]:
    lines = LINE_BREAK.split(text)
    if len(lines) > 1 and not lines[-1]:
        lines.pop()
    return lines


def _iterate(value: object) -> Iterable[object]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,) if value else ()
    return value


def _dump(node: Node, indent: str) -> list[str]:
    result = [indent + node.describe()]
    for child in getattr(node, "children", ()):
        result.extend(_dump(child, indent + "  "))
    return result
