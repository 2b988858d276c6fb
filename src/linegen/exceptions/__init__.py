"""
linegen exception classes.

This package provides all exception types used throughout linegen for
consistent error handling and reporting.
"""

from linegen.exceptions.core import (
    ERROR_MARKER,
    ExpressionError,
    LineGenError,
    ParameterError,
    describe_error,
    error_message,
)

__all__ = [
    "ERROR_MARKER",
    "LineGenError",
    "ExpressionError",
    "ParameterError",
    "describe_error",
    "error_message",
]
