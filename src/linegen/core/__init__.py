"""
Core linegen components.

This package provides the type definitions shared across linegen.
"""

from linegen.core.types import Bindings, Value

__all__ = [
    "Bindings",
    "Value",
]
