from pathlib import Path
from xml.sax.saxutils import escape

from fontpack.errors import ToolError
from fontpack.tools import sibling_woff2


def make_ttx(names: dict[int, str]) -> str:
    """
    Factory helper for a TTX document holding only a ``name`` table.

    Record text is wrapped in newlines and indentation, the way ``ttx``
    writes it.
    """
    records = "".join(
        f'    <namerecord nameID="{name_id}" platformID="3" platEncID="1" langID="0x409">\n'
        f"      {escape(value)}\n"
        "    </namerecord>\n"
        for name_id, value in names.items()
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<ttFont sfntVersion="\\x00\\x01\\x00\\x00" ttLibVersion="4.47">\n'
        "  <name>\n"
        f"{records}"
        "  </name>\n"
        "</ttFont>\n"
    )


def write_font(directory: Path, name: str, payload: bytes | None = None) -> Path:
    path = directory / name
    path.write_bytes(payload if payload is not None else f"font:{name}".encode())
    return path


class FakeDumper:
    """Writes a TTX document from a per-file name table.

    Files in ``failing`` raise ``ToolError``; files in ``malformed`` get a
    truncated document.
    """

    required_tools: tuple[str, ...] = ()

    def __init__(
        self,
        names: dict[str, dict[int, str]] | None = None,
        failing: set[str] | None = None,
        malformed: set[str] | None = None,
    ):
        self.names = names or {}
        self.failing = failing or set()
        self.malformed = malformed or set()
        self.dumped: list[Path] = []

    def dump(self, font_path: Path, xml_path: Path, timeout) -> None:
        if font_path.name in self.failing:
            raise ToolError(f"ttx exited with status 1 for {font_path.name}")
        if font_path.name in self.malformed:
            xml_path.write_text("<ttFont><name>", encoding="utf-8")
            self.dumped.append(xml_path)
            return
        xml_path.write_text(make_ttx(self.names.get(font_path.name, {})), encoding="utf-8")
        self.dumped.append(xml_path)


class FakeConverter:
    """Writes ``<stem>.woff2`` next to the source; listed files fail."""

    required_tools: tuple[str, ...] = ()

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()

    def convert(self, font_path: Path, timeout) -> Path:
        if font_path.name in self.failing:
            raise ToolError("woff2_compress exited with status 1")
        out = sibling_woff2(font_path)
        out.write_bytes(b"wOF2" + font_path.read_bytes())
        return out
