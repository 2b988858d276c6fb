"""
Core type definitions for linegen.

This module contains the type aliases shared by the expression evaluator,
the scope and the node tree.
"""

from collections.abc import MutableMapping
from typing import Any

# Values produced by expressions: strings, numbers, booleans or any opaque
# object an expression returned (lists, ranges, ...)
Value = str | int | float | bool | Any | None

# Variable environment handed to the evaluator; usually a ChainMap so capture
# groups and loop variables can shadow outer variables
Bindings = MutableMapping[str, Value]
