"""
linegen - a line-oriented template engine for code generation

Ordinary template lines are copied to the output; ``///`` command lines
register substitutions, evaluate expressions, insert text and loop over
blocks.
"""

from importlib.metadata import version

from linegen.execution import Scope
from linegen.generator import Generator, GeneratorConfig
from linegen.templates import Template, parse_template

__version__ = version("linegen")

__all__ = [
    "__version__",
    "Generator",
    "GeneratorConfig",
    "Scope",
    "Template",
    "parse_template",
]
