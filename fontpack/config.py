"""Immutable build configuration, created once from the parsed CLI arguments."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

DEFAULT_FONT_DIR = Path("./fonts")
DEFAULT_OUTPUT_DIR = Path("./output")
DEFAULT_CONVERTER = "woff2_compress"
DEFAULT_TOOL_TIMEOUT = 120.0

MANIFEST_NAME = "README.md"
STYLESHEET_NAME = "font-face.css"
LOG_NAME = "build.log"


@dataclass(frozen=True)
class BuildConfig:
    font_dir: Path = DEFAULT_FONT_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    force: bool = False
    enable_woff2: bool = True
    verbose: bool = False
    converter: str = DEFAULT_CONVERTER
    tool_timeout: float | None = DEFAULT_TOOL_TIMEOUT

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> BuildConfig:
        return cls(
            font_dir=Path(args.dir),
            output_dir=Path(args.output),
            force=args.force,
            enable_woff2=not args.no_woff2,
            verbose=args.verbose,
            converter=args.converter,
            tool_timeout=args.timeout if args.timeout and args.timeout > 0 else None,
        )

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / MANIFEST_NAME

    @property
    def stylesheet_path(self) -> Path:
        return self.output_dir / STYLESHEET_NAME

    @property
    def log_path(self) -> Path:
        return self.output_dir / LOG_NAME
