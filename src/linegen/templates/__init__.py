"""
linegen template building.

This package turns template source lines into a node tree ready for
evaluation.
"""

from linegen.templates.template import (
    NORMALIZE_SPACES_RULES,
    ParsedTemplate,
    PendingMatch,
    Template,
    normalize_spaces,
    parse_template,
)

__all__ = [
    "NORMALIZE_SPACES_RULES",
    "ParsedTemplate",
    "PendingMatch",
    "Template",
    "normalize_spaces",
    "parse_template",
]
