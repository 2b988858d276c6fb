"""
linegen execution state.

This package provides the Scope threaded through template evaluation.
"""

from linegen.execution.scope import Scope

__all__ = [
    "Scope",
]
