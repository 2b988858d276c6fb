"""
linegen template tree.

This package provides the node types a template is parsed into and the lazy
line-production protocol they implement.
"""

from linegen.tree.nodes import (
    BlockNode,
    ErrorNode,
    EvalNode,
    InsertNode,
    LineNode,
    ListNode,
    Node,
    OperationNode,
)

__all__ = [
    "BlockNode",
    "ErrorNode",
    "EvalNode",
    "InsertNode",
    "LineNode",
    "ListNode",
    "Node",
    "OperationNode",
]
