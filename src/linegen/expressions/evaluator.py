"""
Expression evaluation for template commands.

This module provides the evaluator that turns an expression string plus a
variable environment into a value. Evaluation is sandboxed through simpleeval:
only literals, operators, comprehensions, attribute access on values and the
registered functions are available.
"""

import ast
from collections.abc import Callable
from typing import Any, Protocol

from simpleeval import DEFAULT_FUNCTIONS, DEFAULT_OPERATORS, EvalWithCompoundTypes

from linegen.core.types import Bindings, Value
from linegen.exceptions import ExpressionError, describe_error


class Evaluator(Protocol):
    """Interface of the expression evaluator consumed by scopes and nodes."""

    def evaluate(self, bindings: Bindings, expression: str) -> Value:
        """Evaluate an expression and return its value."""
        ...

    def execute(self, bindings: Bindings, statement: str) -> Value:
        """Evaluate a statement for its effect on the bindings."""
        ...


def wrap(value: Any, template: str, marker: str = "{}") -> str:
    """
    Wrap a string into a template unless it is empty.

    Params:
        value: Text to wrap
        template: Template containing the marker
        marker: Placeholder replaced by the value

    Returns:
        Empty string for empty input, otherwise the filled template
    """
    text = as_string(value)
    return "" if not text else template.replace(marker, text)


def empty_or(value: Any, replacement: Any) -> str:
    """Return an empty string for empty input, otherwise the replacement."""
    return "" if not as_string(value) else as_string(replacement)


def rm(value: Any, text: str) -> str:
    """Remove every occurrence of text."""
    return as_string(value).replace(text, "")


BUILTIN_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "range": range,
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "tuple": tuple,
    "sorted": sorted,
    "reversed": reversed,
    "enumerate": enumerate,
    "zip": zip,
    "min": min,
    "max": max,
    "abs": abs,
    "wrap": wrap,
    "empty_or": empty_or,
    "rm": rm,
}


def as_string(value: Value) -> str:
    """Stringify an expression result; None becomes the empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


class ExpressionEvaluator:
    """
    Default evaluator backed by simpleeval.

    Names are looked up in the bindings mapping as given, so a ChainMap layer
    shadows its parents without copying anything.
    """

    def __init__(self, functions: dict[str, Callable[..., Any]] | None = None):
        """
        Initialize the evaluator.

        Params:
            functions: Extra functions made available to expressions
        """
        self.functions = {**DEFAULT_FUNCTIONS, **BUILTIN_FUNCTIONS, **(functions or {})}

    def evaluate(self, bindings: Bindings, expression: str) -> Value:
        """
        Evaluate an expression.

        Params:
            bindings: Variable environment
            expression: Expression text

        Returns:
            The expression value

        Raises:
            ExpressionError: If the expression is invalid or fails
        """
        return self._eval(bindings, expression)

    def execute(self, bindings: Bindings, statement: str) -> Value:
        """
        Execute a statement for its effect.

        Supports plain (``x = expr``) and augmented (``x += expr``) assignment
        to simple names; the value is stored in the innermost layer of the
        bindings. Any other statement is evaluated as an expression.

        Params:
            bindings: Variable environment, modified in place
            statement: Statement text

        Returns:
            The assigned or evaluated value

        Raises:
            ExpressionError: If the statement is invalid or fails
        """
        try:
            module = ast.parse(statement.strip())
        except SyntaxError as e:
            raise ExpressionError(statement, f"invalid syntax: {e.msg}") from e
        if len(module.body) != 1:
            raise ExpressionError(statement, "exactly one statement expected")
        node = module.body[0]

        if isinstance(node, ast.Assign):
            names = [self._target_name(statement, t) for t in node.targets]
            value = self._eval(bindings, statement, node.value)
            for name in names:
                bindings[name] = value
            return value

        if isinstance(node, ast.AugAssign):
            name = self._target_name(statement, node.target)
            operator = DEFAULT_OPERATORS.get(type(node.op))
            if operator is None:
                raise ExpressionError(
                    statement, f"unsupported operator: {type(node.op).__name__}"
                )
            if name not in bindings:
                raise ExpressionError(statement, f"'{name}' is not defined")
            operand = self._eval(bindings, statement, node.value)
            try:
                value = operator(bindings[name], operand)
            except Exception as e:
                raise ExpressionError(statement, describe_error(e)) from e
            bindings[name] = value
            return value

        if isinstance(node, ast.Expr):
            return self._eval(bindings, statement, node.value)

        raise ExpressionError(statement, f"unsupported statement: {type(node).__name__}")

    def _eval(self, bindings: Bindings, expression: str, parsed: ast.AST | None = None) -> Value:
        evaluator = EvalWithCompoundTypes(names=bindings, functions=self.functions)
        try:
            if parsed is None:
                return evaluator.eval(expression.strip())
            return evaluator.eval(expression, previously_parsed=parsed)
        except Exception as e:
            raise ExpressionError(expression, describe_error(e)) from e

    @staticmethod
    def _target_name(statement: str, target: ast.AST) -> str:
        if not isinstance(target, ast.Name):
            raise ExpressionError(statement, "only simple names can be assigned")
        return target.id


def string_or_eval(evaluator: Evaluator, bindings: Bindings, text: str) -> str:
    """
    Resolve replacement or pattern text.

    Text starting with ``!`` is an expression whose stringified value is
    returned. Text wrapped in backticks is returned without the backticks.
    Anything else is literal text.

    Params:
        evaluator: Evaluator used for ``!`` expressions
        bindings: Variable environment
        text: Replacement or pattern text

    Returns:
        The resolved string

    Raises:
        ExpressionError: If the expression fails
    """
    if text.startswith("!"):
        return as_string(evaluator.evaluate(bindings, text[1:].strip()))
    if text.startswith("`"):
        literal = text[1:]
        return literal[:-1] if literal.endswith("`") else literal
    return text
