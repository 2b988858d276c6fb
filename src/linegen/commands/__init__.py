"""
linegen command parsing.

This package contains the recognizer and classifier for template command
lines.
"""

from linegen.commands.parser import (
    NORMALIZE_OPTIONS,
    TRIGGER,
    Command,
    CommandParser,
    CommandType,
    LoopHeader,
    parse_command,
)

__all__ = [
    "NORMALIZE_OPTIONS",
    "TRIGGER",
    "Command",
    "CommandParser",
    "CommandType",
    "LoopHeader",
    "parse_command",
]
