"""
Multi-file generation driver.

Runs every configured template through the builder and writes the produced
lines to the mirrored location below the output directory. Each template is
an independent unit with its own tree and Scope; a unit whose Scope collected
errors is reported as failed but its output is still written.
"""

import codecs
import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, field_validator

from linegen.core.types import Value
from linegen.exceptions import ExpressionError, ParameterError
from linegen.execution import Scope
from linegen.expressions import Evaluator, ExpressionEvaluator
from linegen.templates import Template

logger = logging.getLogger(__name__)

# NAME=EXPR, NAME:EXPR or a bare NAME
PARAMETER_PATTERN = re.compile(r"(?:(?P<name>[^=:]+)[=:])?(?P<expr>.*)", re.DOTALL)


class GeneratorConfig(BaseModel):
    """
    Configuration of a generation run.

    Params:
        files: Template files, relative to base_dir unless absolute
        base_dir: Directory the template paths are resolved against
        output_dir: Directory mirroring base_dir for the generated files
        encoding: Character set of templates and generated files
        parameters: Initial variable bindings for every unit
    """

    files: list[Path] = Field(min_length=1)
    base_dir: Path = Field(default_factory=Path.cwd)
    output_dir: Path = Field(default_factory=Path.cwd)
    encoding: str = "utf-8"
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {value}") from e
        return value


@dataclass(frozen=True)
class UnitResult:
    """
    Outcome of generating one template.

    Params:
        source: Template file
        output: Generated file
        errors: Errors collected by the unit's Scope
    """

    source: Path
    output: Path
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class GenerationListener(Protocol):
    """Receives progress notifications from a Generator."""

    def begin_unit(self, source: Path) -> None: ...

    def end_unit(self, result: UnitResult) -> None: ...


class LoggingListener:
    """Listener reporting progress and unit errors through logging."""

    def begin_unit(self, source: Path) -> None:
        logger.info("Generating %s", source)

    def end_unit(self, result: UnitResult) -> None:
        if result.ok:
            logger.debug("Wrote %s", result.output)
            return
        logger.error("%d error(s) in %s", len(result.errors), result.source)
        for message in result.errors:
            logger.error("  %s", message)


def parse_parameter(definition: str, evaluator: Evaluator | None = None) -> tuple[str, Value]:
    """
    Parse a parameter definition.

    ``name=expr`` and ``name:expr`` bind the value of the expression, a bare
    ``name`` binds True.

    Params:
        definition: Parameter definition text
        evaluator: Evaluator for the expression, defaults to ExpressionEvaluator

    Returns:
        Tuple of name and value

    Raises:
        ParameterError: If the name is not an identifier or the expression fails
    """
    m = PARAMETER_PATTERN.fullmatch(definition)
    name, expression = m.group("name"), m.group("expr")
    if name is None:
        name, value = expression.strip(), True
    else:
        name = name.strip()
        evaluator = evaluator or ExpressionEvaluator()
        try:
            value = evaluator.evaluate({}, expression)
        except ExpressionError as e:
            raise ParameterError(definition, e.reason) from e
    if not name.isidentifier():
        raise ParameterError(definition, f"'{name}' is not a valid name")
    return name, value


def parse_parameters(definitions: Iterable[str], evaluator: Evaluator | None = None) -> dict[str, Value]:
    """Parse several parameter definitions; later definitions win."""
    return dict(parse_parameter(d, evaluator) for d in definitions)


class Generator:
    """Driver generating all configured templates."""

    def __init__(self, config: GeneratorConfig, evaluator: Evaluator | None = None):
        self.config = config
        self.evaluator = evaluator or ExpressionEvaluator()
        self._listeners: list[GenerationListener] = []

    def add_listener(self, listener: GenerationListener) -> None:
        self._listeners.append(listener)

    def generate(self) -> list[UnitResult]:
        """
        Generate every configured template.

        Returns:
            One result per template, in configuration order

        Raises:
            OSError: If a template cannot be read or an output cannot be written
            UnicodeError: If a template is not valid in the configured encoding
        """
        return [self.generate_unit(file) for file in self.config.files]

    def generate_unit(self, file: Path) -> UnitResult:
        """
        Generate a single template.

        Params:
            file: Template file, relative to base_dir unless absolute

        Returns:
            The unit result

        Raises:
            OSError: If the template cannot be read or the output cannot be written
            UnicodeError: If the template is not valid in the configured encoding
        """
        base_dir = self.config.base_dir
        source = Path(os.path.normpath(base_dir / file))
        for listener in self._listeners:
            listener.begin_unit(source)

        default_out = Path(
            os.path.normpath(self.config.output_dir / os.path.relpath(source, base_dir))
        )
        template = Template()
        root = template.parse_file(source, self.config.encoding)
        output = template.output_file(default_out)
        output.parent.mkdir(parents=True, exist_ok=True)

        scope = Scope(self.config.parameters, self.evaluator)
        with open(output, "w", encoding=self.config.encoding, newline="\n") as out:
            for line in root.lines(scope):
                out.write(line)
                out.write("\n")

        result = UnitResult(source, output, scope.errors)
        for listener in self._listeners:
            listener.end_unit(result)
        return result
