"""
fontpack – name_table.py
========================

Extract a normalized ``FontMetadata`` record from a font's OpenType ``name``
table.

The table is dumped to a TTX document in a private temporary directory and
the nine name IDs used by the manifest are looked up one by one. Each lookup
is independent: a missing or unreadable record falls back to ``"Unknown"``
without affecting the others. Only a failed dump, or a dump that does not
parse, aborts extraction.
"""

from __future__ import annotations

import logging
import tempfile
import unicodedata
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from fontpack.errors import ExtractionError, ToolError
from fontpack.tools import MetadataDumper, StructuredQuery

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
FONT_EXTENSIONS = (".ttf", ".otf")

NAME_ID_COPYRIGHT = 0
NAME_ID_FAMILY = 1
NAME_ID_SUBFAMILY = 2
NAME_ID_FULLNAME = 4
NAME_ID_VERSION = 5
NAME_ID_POSTSCRIPT = 6
NAME_ID_DESIGNER = 9
NAME_ID_LICENSE = 13
NAME_ID_LICENSE_URL = 14

#: Mapping of ``FontMetadata`` field → OpenType nameID.
NAME_FIELDS: dict[str, int] = {
    "family_name": NAME_ID_FAMILY,
    "subfamily": NAME_ID_SUBFAMILY,
    "full_name": NAME_ID_FULLNAME,
    "version": NAME_ID_VERSION,
    "postscript_name": NAME_ID_POSTSCRIPT,
    "designer": NAME_ID_DESIGNER,
    "license_text": NAME_ID_LICENSE,
    "license_url": NAME_ID_LICENSE_URL,
    "copyright": NAME_ID_COPYRIGHT,
}


@dataclass(frozen=True)
class FontMetadata:
    family_name: str = UNKNOWN
    subfamily: str = UNKNOWN
    full_name: str = UNKNOWN
    version: str = UNKNOWN
    postscript_name: str = UNKNOWN
    designer: str = UNKNOWN
    license_text: str = UNKNOWN
    license_url: str = UNKNOWN
    copyright: str = UNKNOWN


def cleanup_text(value: str) -> str:
    """Remove control characters and trim surrounding whitespace.

    TTX wraps record text in newlines and indentation; those and any other
    control character (tabs, carriage returns, C1 controls) are deleted
    outright rather than replaced, so ``"Foo\\n   Bar"`` becomes
    ``"Foo   Bar"``.
    """
    kept = "".join(ch for ch in value if unicodedata.category(ch) != "Cc")
    return kept.strip()


def _is_missing(value: str) -> bool:
    return not value or value == UNKNOWN


def font_base_name(font_path: Path) -> str:
    """Return the file name with a ``.ttf`` / ``.otf`` extension stripped."""
    if font_path.suffix.lower() in FONT_EXTENSIONS:
        return font_path.stem
    return font_path.name


def _query_field(query: StructuredQuery, root: ET.Element, name_id: int) -> str:
    try:
        value = cleanup_text(query.query(root, name_id))
    except Exception as e:
        logger.debug("nameID %d lookup failed: %s", name_id, e)
        return UNKNOWN
    return value or UNKNOWN


def build_metadata(raw: dict[str, str], font_path: Path) -> FontMetadata:
    """Apply the family-name fallback chain and normalize every field.

    Args:
        raw: Field name → raw string, as produced by the name table lookups.
            Absent keys count as ``"Unknown"``.
        font_path: Source font, used for the last-resort family name.

    Returns:
        A ``FontMetadata`` whose ``family_name`` is never empty.
    """
    fields = {
        name: cleanup_text(raw.get(name, UNKNOWN)) or UNKNOWN for name in NAME_FIELDS
    }

    if _is_missing(fields["family_name"]):
        fields["family_name"] = fields["full_name"]
    if _is_missing(fields["family_name"]):
        fields["family_name"] = cleanup_text(font_base_name(font_path)) or UNKNOWN

    return FontMetadata(**fields)


def extract_font_metadata(
    font_path: Path,
    dumper: MetadataDumper,
    query: StructuredQuery,
    *,
    timeout: float | None = None,
) -> FontMetadata:
    """Dump the ``name`` table of ``font_path`` and build its metadata record.

    The TTX document lives in a temporary directory owned by this call, so
    concurrent extractions never share files.

    Args:
        font_path: TTF/OTF file to inspect.
        dumper: Produces the TTX document.
        query: Reads single name records from the document.
        timeout: Upper bound in seconds for the dump tool.

    Returns:
        The normalized ``FontMetadata``.

    Raises:
        ExtractionError: if the dump step fails or its output cannot be parsed.
    """
    with tempfile.TemporaryDirectory(prefix="fontpack-") as tmp:
        xml_path = Path(tmp) / f"{font_path.stem}.ttx"
        try:
            dumper.dump(font_path, xml_path, timeout)
            root = query.load(xml_path)
        except ToolError as e:
            raise ExtractionError(
                f"Failed to extract metadata from {font_path.name}: {e}",
                details=e.details,
            ) from e

        raw = {
            field: _query_field(query, root, name_id)
            for field, name_id in NAME_FIELDS.items()
        }

    return build_metadata(raw, font_path)
