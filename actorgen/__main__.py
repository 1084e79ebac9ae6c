"""Command line front end: rewrite a module's actors and print the result.

    python -m actorgen counter.py
    python -m actorgen counter.py -o counter_expanded.py
    python -m actorgen counter.py --check
"""

from __future__ import annotations

import argparse
import sys
import tomllib
from pathlib import Path

from . import logger
from .config import load_config
from .logger import Level
from .emitter import transform_source
from .errors import TransformError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actorgen",
        description="Expand @actor declarations and method blocks into actor wiring.",
    )
    parser.add_argument("source", type=Path, help="Python module to transform")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write the result here instead of stdout")
    parser.add_argument("--config", type=Path, default=None, help="Path to actorgen.toml")
    parser.add_argument("--check", action="store_true", help="Only validate; write nothing")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=[level.name for level in Level],
        default=None,
        help="Log threshold (case-insensitive)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except OSError as e:
        logger.error("cannot read config", path=str(args.config), reason=str(e))
        return 1
    except (tomllib.TOMLDecodeError, TypeError, ValueError) as e:
        logger.error("invalid config", path=str(args.config), reason=str(e))
        return 1

    logger.configure(
        args.log_level or config.logging.level,
        format=config.logging.format,
        colors=config.logging.colors,
    )

    try:
        source = args.source.read_text(encoding="utf-8")
        output = transform_source(source, config.generator, filename=str(args.source))
    except OSError as e:
        logger.error("cannot read source", path=str(args.source), reason=e.strerror)
        return 1
    except TransformError as e:
        logger.error("transformation failed", path=str(args.source), reason=str(e))
        return 1

    if args.check:
        logger.info("ok", path=str(args.source))
        return 0

    if args.output is None:
        sys.stdout.write(output)
    else:
        args.output.write_text(output, encoding="utf-8")
        logger.info("wrote", path=str(args.output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
