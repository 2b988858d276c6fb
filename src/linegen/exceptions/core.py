"""
Exception classes for linegen template processing.

This module defines the exception types raised while evaluating expressions
and driving generation, plus the helpers that turn failures into the
diagnostic text written into generated output.
"""

ERROR_MARKER = "[[ERROR]]"


class LineGenError(Exception):
    """Base exception for all linegen errors."""

    pass


class ExpressionError(LineGenError):
    """Raised when the expression evaluator cannot evaluate an expression."""

    def __init__(self, expression: str, reason: str):
        """
        Initialize the exception.

        Params:
            expression: The expression text that failed
            reason: The underlying reason for the failure
        """
        self.expression = expression
        self.reason = reason
        super().__init__(f"Cannot evaluate '{expression}': {reason}")


class ParameterError(LineGenError):
    """Raised when a generator parameter definition cannot be used."""

    def __init__(self, parameter: str, reason: str):
        """
        Initialize the exception.

        Params:
            parameter: The parameter definition as given on the command line
            reason: Why the parameter is invalid
        """
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid parameter '{parameter}': {reason}")


def describe_error(error: BaseException) -> str:
    """
    Short, human readable description of an exception.

    For ExpressionError only the reason is returned since callers already
    show the expression next to it.

    Params:
        error: The exception to describe

    Returns:
        Description text, falling back to the exception class name
    """
    if isinstance(error, ExpressionError):
        return error.reason
    return str(error) or type(error).__name__


def error_message(message: object) -> str:
    """
    Render a message as a diagnostic line for generated output.

    Continuation lines of multi-line messages are prefixed with ``//`` so the
    diagnostic stays a comment in most C-like target languages.

    Params:
        message: Message or exception to render

    Returns:
        Diagnostic text starting with the error marker
    """
    return f"{ERROR_MARKER} // " + "\n//".join(str(message).splitlines())
