"""
fontpack – tools.py
===================

Adapters around the tools the pipeline depends on.

Each concern is modeled as a small capability so that tests can swap in
deterministic fakes instead of invoking real binaries:

- ``MetadataDumper``: font file → TTX XML document with the ``name`` table
- ``StructuredQuery``: TTX document → parsed tree (``load``), tree + nameID
  → string (``query``)
- ``Converter``: font file → sibling ``.woff2`` file next to the source
- ``Digester``: file → raw SHA-256 digest

Every adapter advertises the executables it needs in ``required_tools`` so the
pipeline can check them before any font is touched.
"""

from __future__ import annotations

import hashlib
import subprocess
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Protocol

# fontTools does not provide type stubs/py.typed
from fontTools.ttLib import TTFont  # type: ignore[import]

from fontpack.errors import ToolError

WOFF2_SUFFIX = ".woff2"


def run_command(
    argv: list[str], timeout: float | None = None
) -> subprocess.CompletedProcess[str]:
    """Run ``argv`` and capture combined stdout/stderr as text.

    Bytes that are not valid UTF-8 are replaced, so tool output echoing
    odd file names never fails to decode.

    Raises:
        ToolError: if the executable cannot be started or the call exceeds
            ``timeout``.
    """
    try:
        return subprocess.run(
            argv,
            text=True,
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ToolError(f"{argv[0]} not found", details=argv) from e
    except subprocess.TimeoutExpired as e:
        raise ToolError(f"{argv[0]} timed out after {timeout}s", details=argv) from e
    except OSError as e:
        raise ToolError(f"cannot run {argv[0]}: {e}", details=argv) from e


# -----------------------
# Capabilities
# -----------------------
class MetadataDumper(Protocol):
    required_tools: tuple[str, ...]

    def dump(self, font_path: Path, xml_path: Path, timeout: float | None) -> None:
        ...


class StructuredQuery(Protocol):
    required_tools: tuple[str, ...]

    def load(self, xml_path: Path) -> ET.Element:
        ...

    def query(self, root: ET.Element, name_id: int) -> str:
        ...


class Converter(Protocol):
    required_tools: tuple[str, ...]

    def convert(self, font_path: Path, timeout: float | None) -> Path:
        ...


class Digester(Protocol):
    required_tools: tuple[str, ...]

    def digest(self, path: Path) -> bytes:
        ...


def sibling_woff2(font_path: Path) -> Path:
    """Return the path a WOFF2 converter writes next to ``font_path``."""
    return font_path.with_suffix(WOFF2_SUFFIX)


# -----------------------
# Default implementations
# -----------------------
class TtxDumper:
    """Dump the ``name`` table with fontTools' ``ttx`` command."""

    required_tools = ("ttx",)

    def dump(self, font_path: Path, xml_path: Path, timeout: float | None) -> None:
        proc = run_command(
            ["ttx", "-q", "-t", "name", "-o", str(xml_path), str(font_path)],
            timeout=timeout,
        )
        if proc.returncode != 0:
            raise ToolError(
                f"ttx exited with status {proc.returncode}", details=proc.stdout
            )
        if not xml_path.is_file():
            raise ToolError(f"ttx produced no output for {font_path.name}")


class NameRecordQuery:
    """Look up ``namerecord`` text in a TTX document.

    Returns the text of the first record carrying the requested ``nameID`` in
    document order, or ``""`` if there is none. The document is parsed once
    by ``load`` and shared by every lookup.
    """

    required_tools: tuple[str, ...] = ()

    def load(self, xml_path: Path) -> ET.Element:
        try:
            return ET.parse(xml_path).getroot()
        except (ET.ParseError, OSError) as e:
            raise ToolError(f"unreadable TTX document {xml_path.name}: {e}") from e

    def query(self, root: ET.Element, name_id: int) -> str:
        wanted = str(name_id)
        for rec in root.iter("namerecord"):
            if rec.get("nameID") == wanted:
                return "".join(rec.itertext())
        return ""


class Woff2CompressConverter:
    """Google's ``woff2_compress``: writes ``<stem>.woff2`` beside the input."""

    required_tools = ("woff2_compress",)

    def convert(self, font_path: Path, timeout: float | None) -> Path:
        proc = run_command(["woff2_compress", str(font_path)], timeout=timeout)
        if proc.returncode != 0:
            raise ToolError(
                f"woff2_compress exited with status {proc.returncode}",
                details=proc.stdout,
            )
        return sibling_woff2(font_path)


class FontToolsWoff2Converter:
    """In-process WOFF2 encoder from fontTools (requires ``brotli``).

    The ``timeout`` is accepted for interface parity; in-process encoding
    cannot be interrupted.
    """

    required_tools: tuple[str, ...] = ()

    def convert(self, font_path: Path, timeout: float | None) -> Path:
        out = sibling_woff2(font_path)
        try:
            with TTFont(font_path, recalcBBoxes=False, recalcTimestamp=False) as font:
                font.flavor = "woff2"
                font.save(out)
        except Exception as e:
            raise ToolError(f"fontTools WOFF2 encoding failed: {e}") from e
        return out


class Sha256Digester:
    required_tools: tuple[str, ...] = ()

    def digest(self, path: Path) -> bytes:
        h = hashlib.sha256()
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(1 << 16), b""):
                h.update(chunk)
        return h.digest()


CONVERTERS: dict[str, type] = {
    "woff2_compress": Woff2CompressConverter,
    "fonttools": FontToolsWoff2Converter,
}
