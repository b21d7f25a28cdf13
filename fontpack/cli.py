#!/usr/bin/env python3
"""
fontpack – cli.py
=================

Command-line entry point.

Exit codes
----------
- ``0``: the batch reached finalization, even if some fonts failed
- ``1``: fatal precondition failure or invalid command line
"""

from __future__ import annotations

import argparse
import logging
import math
import sys

from fontpack import __version__
from fontpack.config import (
    DEFAULT_CONVERTER,
    DEFAULT_FONT_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TOOL_TIMEOUT,
    BuildConfig,
)
from fontpack.errors import MissingDependencyError, PreconditionError
from fontpack.logs import setup_logging
from fontpack.pipeline import BatchPipeline
from fontpack.tools import CONVERTERS

logger = logging.getLogger(__name__)

PROG = "fontpack"
EXIT_OK = 0
EXIT_FAILURE = 1

DESCRIPTION = f"""\
Font Self-Hosting Preparation Script v{__version__}

Processes TTF/OTF font files to create a self-hosted font package with
proper metadata extraction, WOFF2 conversion, and CSS generation.
"""

EPILOG = f"""\
requirements:
  ttx (fonttools)
  woff2_compress (woff2), unless --no-woff2 or --converter fonttools

examples:
  {PROG}
  {PROG} --dir ./my-fonts --output ./dist
  {PROG} --force --verbose
"""


class _Parser(argparse.ArgumentParser):
    """Argument parser exiting with status 1 on usage errors."""

    def error(self, message: str):  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _timeout(value: str) -> float:
    """Parse a ``--timeout`` value: a non-negative number of seconds."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'") from None
    if not math.isfinite(seconds) or seconds < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more seconds, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show version information",
    )
    parser.add_argument(
        "-d",
        "--dir",
        default=str(DEFAULT_FONT_DIR),
        metavar="DIR",
        help="Font directory (default: %(default)s)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=str(DEFAULT_OUTPUT_DIR),
        metavar="DIR",
        help="Output directory (default: %(default)s)",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Force overwrite existing output",
    )
    parser.add_argument(
        "--no-woff2",
        action="store_true",
        help="Skip WOFF2 conversion",
    )
    parser.add_argument(
        "--converter",
        choices=sorted(CONVERTERS),
        default=DEFAULT_CONVERTER,
        help="WOFF2 encoder to use (default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=_timeout,
        default=DEFAULT_TOOL_TIMEOUT,
        metavar="SECONDS",
        help="Time limit per external tool call, 0 disables it (default: %(default)s)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse ``argv``, run the pipeline and return the process exit code."""
    args = build_parser().parse_args(argv)
    config = BuildConfig.from_args(args)
    setup_logging(verbose=config.verbose)

    try:
        BatchPipeline(config).run()
    except PreconditionError as e:
        logger.error("%s", e)
        if isinstance(e, MissingDependencyError):
            logger.error("Please install the missing tools and try again.")
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
