"""
Tests for the multi-file generation driver.
"""

import logging

import pytest
from pydantic import ValidationError

from linegen.exceptions import ParameterError
from linegen.generator import (
    Generator,
    GeneratorConfig,
    LoggingListener,
    UnitResult,
    parse_parameter,
    parse_parameters,
)


class RecordingListener:
    """Listener remembering every notification."""

    def __init__(self):
        self.events = []

    def begin_unit(self, source):
        self.events.append(("begin", source))

    def end_unit(self, result):
        self.events.append(("end", result))


@pytest.fixture
def workspace(tmp_path):
    """Source and output directories below tmp_path."""
    src = tmp_path / "src"
    out = tmp_path / "out"
    src.mkdir()
    return src, out


def write(path, text, encoding="utf-8"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding=encoding)
    return path


class TestParameters:
    """Tests for parameter definitions."""

    @pytest.mark.parametrize(
        "definition,expected",
        [
            ("count=1+1", ("count", 2)),
            ("name:'x'", ("name", "x")),
            ("flag", ("flag", True)),
            (" spaced = 3", ("spaced", 3)),
            ("d={'a': 1}", ("d", {"a": 1})),
            ("items=[1, 2]", ("items", [1, 2])),
        ],
    )
    def test_parse_parameter(self, definition, expected):
        """Test the accepted definition forms."""
        assert parse_parameter(definition) == expected

    @pytest.mark.parametrize("definition", ["1x=2", "x=missing", "a b", "x=1 +"])
    def test_invalid_parameter(self, definition):
        """Test that bad names and failing expressions are rejected."""
        with pytest.raises(ParameterError):
            parse_parameter(definition)

    def test_later_definitions_win(self):
        """Test that repeated names keep the last value."""
        assert parse_parameters(["a=1", "b=2", "a=3"]) == {"a": 3, "b": 2}


class TestGeneratorConfig:
    """Tests for configuration validation."""

    def test_defaults(self):
        """Test default directories, encoding and parameters."""
        config = GeneratorConfig(files=["a.tpl"])
        assert config.encoding == "utf-8"
        assert config.parameters == {}
        assert config.base_dir.is_absolute()

    def test_files_required(self):
        """Test that at least one template must be given."""
        with pytest.raises(ValidationError):
            GeneratorConfig(files=[])

    def test_unknown_encoding(self):
        """Test that unknown character sets are rejected."""
        with pytest.raises(ValidationError):
            GeneratorConfig(files=["a.tpl"], encoding="no-such-charset")


class TestGenerator:
    """Tests for generating units."""

    def test_output_mirrors_base_dir(self, workspace):
        """Test that outputs land at the mirrored relative path."""
        src, out = workspace
        write(src / "pkg" / "Foo.java", "///=x\n///->y\nx\nz\n")
        config = GeneratorConfig(files=["pkg/Foo.java"], base_dir=src, output_dir=out)
        [result] = Generator(config).generate()
        assert result.ok
        assert result.output == out / "pkg" / "Foo.java"
        assert result.output.read_text(encoding="utf-8") == "y\nz\n"

    def test_filename_override(self, workspace):
        """Test that the filename directive changes the output path."""
        src, out = workspace
        write(src / "pkg" / "Foo.java.tpl", "///filename Foo.java\nclass Foo {}\n")
        config = GeneratorConfig(files=["pkg/Foo.java.tpl"], base_dir=src, output_dir=out)
        [result] = Generator(config).generate()
        assert result.output == out / "pkg" / "Foo.java"
        assert result.output.read_text(encoding="utf-8") == "class Foo {}\n"

    def test_parameters_are_bound(self, workspace):
        """Test that configured parameters are visible to every unit."""
        src, out = workspace
        write(src / "a.txt", "///> 'Hello ' + name\n")
        write(src / "b.txt", "///> name + '!'\n")
        config = GeneratorConfig(
            files=["a.txt", "b.txt"],
            base_dir=src,
            output_dir=out,
            parameters={"name": "World"},
        )
        results = Generator(config).generate()
        assert [r.output.read_text(encoding="utf-8") for r in results] == [
            "Hello World\n",
            "World!\n",
        ]

    def test_units_are_independent(self, workspace):
        """Test that rules and variables do not leak between units."""
        src, out = workspace
        write(src / "a.txt", "///=x\n///->y\n///! v = 1\nx\n")
        write(src / "b.txt", "x\n")
        config = GeneratorConfig(files=["a.txt", "b.txt"], base_dir=src, output_dir=out)
        Generator(config).generate()
        assert (out / "b.txt").read_text(encoding="utf-8") == "x\n"
        assert "v" not in config.parameters

    def test_errors_reported_and_output_written(self, workspace):
        """Test that a unit with errors still writes its output."""
        src, out = workspace
        write(src / "a.txt", "///->X\nkept\n")
        config = GeneratorConfig(files=["a.txt"], base_dir=src, output_dir=out)
        [result] = Generator(config).generate()
        assert not result.ok
        assert result.errors == ("replacement without match: X",)
        assert result.output.read_text(encoding="utf-8") == "kept\n"

    def test_encoding(self, workspace):
        """Test that templates and outputs use the configured charset."""
        src, out = workspace
        write(src / "a.txt", "café\n", encoding="latin-1")
        config = GeneratorConfig(
            files=["a.txt"], base_dir=src, output_dir=out, encoding="latin-1"
        )
        [result] = Generator(config).generate()
        assert result.output.read_bytes() == b"caf\xe9\n"

    def test_absolute_template_path(self, workspace):
        """Test that absolute template paths are accepted."""
        src, out = workspace
        path = write(src / "a.txt", "x\n")
        config = GeneratorConfig(files=[path], base_dir=src, output_dir=out)
        [result] = Generator(config).generate()
        assert result.output == out / "a.txt"

    def test_missing_template(self, workspace):
        """Test that unreadable templates raise OSError."""
        src, out = workspace
        config = GeneratorConfig(files=["missing.txt"], base_dir=src, output_dir=out)
        with pytest.raises(OSError):
            Generator(config).generate()

    def test_listeners(self, workspace):
        """Test that listeners are notified around every unit."""
        src, out = workspace
        write(src / "a.txt", "x\n")
        config = GeneratorConfig(files=["a.txt"], base_dir=src, output_dir=out)
        generator = Generator(config)
        listener = RecordingListener()
        generator.add_listener(listener)
        [result] = generator.generate()
        assert listener.events == [("begin", src / "a.txt"), ("end", result)]


class TestLoggingListener:
    """Tests for the logging listener."""

    def test_failed_unit_is_logged(self, tmp_path, caplog):
        """Test that unit errors are logged at ERROR level."""
        result = UnitResult(tmp_path / "a.txt", tmp_path / "out.txt", ("bad thing",))
        with caplog.at_level(logging.INFO, logger="linegen.generator"):
            LoggingListener().begin_unit(result.source)
            LoggingListener().end_unit(result)
        assert "Generating" in caplog.text
        assert "bad thing" in caplog.text
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_successful_unit_has_no_errors(self, tmp_path, caplog):
        """Test that a clean unit logs no errors."""
        result = UnitResult(tmp_path / "a.txt", tmp_path / "out.txt")
        with caplog.at_level(logging.DEBUG, logger="linegen.generator"):
            LoggingListener().end_unit(result)
        assert result.ok
        assert not any(r.levelno >= logging.ERROR for r in caplog.records)
