"""Exceptions raised by fontpack.

Two tiers exist:

- ``PreconditionError`` and its subclasses are fatal: they stop the run
  before any font is processed and map to exit code 1.
- ``FontProcessingError`` and its subclasses concern a single font: the
  pipeline records them and moves on to the next file.
"""

from __future__ import annotations

from typing import Any


class FontPackError(Exception):
    """Base exception for all fontpack errors."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message)
        self.details = details


class ToolError(FontPackError):
    """An external tool could not be run or exited with an error."""


# -----------------------
# Fatal tier
# -----------------------
class PreconditionError(FontPackError):
    """A requirement for starting the batch is not met."""


class MissingDependencyError(PreconditionError):
    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing required dependencies: {' '.join(missing)}", details=missing
        )
        self.missing = missing


class FontDirectoryError(PreconditionError):
    """Input directory is absent or holds no TTF/OTF file."""


class OutputExistsError(PreconditionError):
    def __init__(self, path: Any):
        super().__init__(
            f"Output directory '{path}' already exists. Use --force to overwrite.",
            details=path,
        )


# -----------------------
# Per-font tier
# -----------------------
class FontProcessingError(FontPackError):
    """Processing of one font failed; the batch continues."""


class ExtractionError(FontProcessingError):
    """The name table of a font could not be dumped."""
