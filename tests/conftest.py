"""
Shared test fixtures and utilities for the linegen test suite.
"""

import pytest

from linegen.exceptions import ExpressionError
from linegen.execution import Scope
from linegen.templates import parse_template


class StubEvaluator:
    """Evaluator answering from a fixed table of expression values.

    Expressions found in ``failures`` raise ExpressionError with the mapped
    reason; unknown expressions evaluate to the expression text itself.
    """

    def __init__(self, values=None, failures=None):
        self.values = dict(values or {})
        self.failures = dict(failures or {})
        self.calls = []

    def evaluate(self, bindings, expression):
        self.calls.append(expression)
        if expression in self.failures:
            raise ExpressionError(expression, self.failures[expression])
        return self.values.get(expression, expression)

    def execute(self, bindings, statement):
        return self.evaluate(bindings, statement)


@pytest.fixture
def scope():
    """Fresh scope with the default evaluator and no bindings."""
    return Scope()


@pytest.fixture
def render():
    """Render template lines and return the output together with the scope.

    Usage:
        def test_something(render):
            output, scope = render(["hello"], name="World")
    """

    def _render(lines, evaluator=None, **bindings):
        parsed = parse_template(lines)
        scope = Scope(bindings, evaluator)
        return list(parsed.root.lines(scope)), scope

    return _render


@pytest.fixture
def stub_evaluator():
    """Factory for StubEvaluator instances.

    Usage:
        def test_something(stub_evaluator):
            evaluator = stub_evaluator({"items": [1, 2]}, failures={"bad": "boom"})
    """
    return StubEvaluator
