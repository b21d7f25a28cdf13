"""WOFF2 conversion of a single font.

The converter writes ``<stem>.woff2`` next to the source font; on success the
file is moved into the output directory. Failures are reported in the
returned ``ConversionResult`` and never raised, so the caller can carry on
with the original file only.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from fontpack.errors import ToolError
from fontpack.tools import WOFF2_SUFFIX, Converter, sibling_woff2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    converted_path: Path | None = None
    succeeded: bool = False
    reason: str | None = None


def convert_font(
    font_path: Path,
    output_dir: Path,
    converter: Converter,
    *,
    timeout: float | None = None,
) -> ConversionResult:
    """Convert ``font_path`` to WOFF2 and place the result in ``output_dir``.

    Args:
        font_path: Source TTF/OTF file.
        output_dir: Destination directory for ``<stem>.woff2``.
        converter: Tool adapter producing the sibling file.
        timeout: Upper bound in seconds for the conversion tool.

    Returns:
        ``ConversionResult`` with ``succeeded=True`` and the final path, or
        ``succeeded=False`` and a human-readable reason.

    A partial sibling left by a failed conversion or move is removed, unless
    a file of that name was already there before the converter ran.
    """
    expected = sibling_woff2(font_path)
    preexisting = expected.exists()

    try:
        sibling = converter.convert(font_path, timeout)
    except ToolError as e:
        if not preexisting:
            expected.unlink(missing_ok=True)
        return ConversionResult(reason=str(e))

    if not sibling.is_file():
        return ConversionResult(reason=f"expected output {sibling.name} is missing")

    target = output_dir / f"{font_path.stem}{WOFF2_SUFFIX}"
    if target.exists():
        logger.warning("Overwriting %s from an earlier font", target.name)
    try:
        shutil.move(str(sibling), str(target))
    except OSError as e:
        if not preexisting:
            sibling.unlink(missing_ok=True)
        return ConversionResult(reason=f"cannot move {sibling.name}: {e}")

    logger.debug("Moved %s to %s", sibling, target)
    return ConversionResult(converted_path=target, succeeded=True)
