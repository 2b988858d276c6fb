"""
linegen expression evaluation.

This package provides the sandboxed evaluator used by eval, insert and block
commands and by substitution replacements.
"""

from linegen.expressions.evaluator import (
    BUILTIN_FUNCTIONS,
    Evaluator,
    ExpressionEvaluator,
    as_string,
    string_or_eval,
)

__all__ = [
    "BUILTIN_FUNCTIONS",
    "Evaluator",
    "ExpressionEvaluator",
    "as_string",
    "string_or_eval",
]
