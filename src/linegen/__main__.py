"""CLI entry point: python -m linegen [-d BASE] [-o OUT] [-p NAME=EXPR] FILE..."""

import argparse
import logging
import sys

from pydantic import ValidationError

from linegen.exceptions import ParameterError
from linegen.expressions import ExpressionEvaluator
from linegen.generator import Generator, GeneratorConfig, LoggingListener, parse_parameters

logger = logging.getLogger("linegen")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linegen",
        description="Line-oriented template code generator",
    )
    parser.add_argument("files", nargs="+", metavar="FILE", help="Template files")
    parser.add_argument("-d", dest="base_dir", default=None,
                        help="Base directory of the templates (default: current directory)")
    parser.add_argument("-o", dest="output_dir", default=None,
                        help="Output directory mirroring the base directory (default: current directory)")
    parser.add_argument("-e", dest="encoding", default=None,
                        help="Character set of templates and output (default: utf-8)")
    parser.add_argument("-p", dest="parameters", action="append", default=[],
                        metavar="NAME[=EXPR]",
                        help="Bind a variable; a bare NAME binds True (repeatable)")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    evaluator = ExpressionEvaluator()
    options = {
        key: value
        for key, value in (
            ("base_dir", args.base_dir),
            ("output_dir", args.output_dir),
            ("encoding", args.encoding),
        )
        if value is not None
    }
    try:
        config = GeneratorConfig(
            files=args.files,
            parameters=parse_parameters(args.parameters, evaluator),
            **options,
        )
    except (ParameterError, ValidationError) as e:
        logger.error("%s", e)
        return EXIT_USAGE

    generator = Generator(config, evaluator)
    generator.add_listener(LoggingListener())
    try:
        results = generator.generate()
    except (OSError, UnicodeError) as e:
        logger.error("Generation failed: %s", e)
        return EXIT_FAILED

    failed = [r for r in results if not r.ok]
    if failed:
        logger.error("%d of %d unit(s) failed", len(failed), len(results))
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
