"""
linegen substitution engine.

This package provides pattern/replacement rules and the First/All combinators
used to filter template lines.
"""

from linegen.substitution.rules import All, First, MatchMode, Result, Rule, Substitution

__all__ = [
    "All",
    "First",
    "MatchMode",
    "Result",
    "Rule",
    "Substitution",
]
