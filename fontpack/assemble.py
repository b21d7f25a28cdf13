"""
fontpack – assemble.py
======================

Writers for the two text artifacts of a build:

- ``README.md``: human-readable manifest, one section per font plus an
  integrity footer
- ``font-face.css``: one ``@font-face`` rule per font

Both files are append-only. Every call adds a new section; callers invoke
the per-font methods exactly once per processed font.

The templates below are whitespace-sensitive: the stylesheet hash published
in the manifest footer is computed over the exact bytes written here.
"""

from __future__ import annotations

from pathlib import Path

from fontpack.integrity import csp_source
from fontpack.name_table import FontMetadata

MANIFEST_TITLE = "Font Self-Hosting Package"

#: Source file extension → CSS ``format()`` keyword.
CSS_FORMATS: dict[str, str] = {
    ".woff2": "woff2",
    ".ttf": "truetype",
    ".otf": "opentype",
}


def css_format(path: Path) -> str:
    return CSS_FORMATS.get(path.suffix.lower(), "truetype")


def css_string(value: str) -> str:
    """Quote ``value`` as a single-quoted CSS string."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class OutputAssembler:
    """Append sections to the manifest and stylesheet of one build."""

    def __init__(self, manifest_path: Path, stylesheet_path: Path):
        self.manifest_path = manifest_path
        self.stylesheet_path = stylesheet_path

    def _append(self, path: Path, text: str) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write(text)

    # -----------------------
    # Headers
    # -----------------------
    def write_headers(self, generated_at: str, version: str) -> None:
        """Create both files with their title blocks, replacing any content."""
        self.manifest_path.write_text(
            f"# {MANIFEST_TITLE}\n"
            "\n"
            "This package contains self-hosted font files with their associated "
            "metadata, licensing information, and CSS declarations.\n"
            "\n"
            f"## Generated on: {generated_at}\n"
            f"## Script version: {version}\n"
            "\n",
            encoding="utf-8",
        )
        # Stylesheet bytes must not depend on the build time.
        self.stylesheet_path.write_text(
            "/* Generated @font-face rules */\n"
            "/* This file contains CSS declarations for self-hosted fonts */\n"
            f"/* fontpack {version} */\n"
            "\n",
            encoding="utf-8",
        )

    # -----------------------
    # Per-font sections
    # -----------------------
    def append_font_section(
        self,
        file_name: str,
        metadata: FontMetadata,
        checksum: str,
        converted_name: str | None = None,
        converted_hash_b64: str | None = None,
    ) -> None:
        """Append the manifest record of one font.

        Args:
            file_name: Name of the original font file.
            metadata: Normalized name-table metadata.
            checksum: Hex SHA-256 of the original file.
            converted_name: Name of the generated WOFF2 file, if any.
            converted_hash_b64: Base64 SHA-256 of the WOFF2 file, if any.
        """
        lines = [
            f"## {metadata.full_name}",
            f"- **File**: `{file_name}`",
            f"- **Family**: {metadata.family_name}",
            f"- **Subfamily**: {metadata.subfamily}",
            f"- **Designer**: {metadata.designer}",
            f"- **Version**: {metadata.version}",
            f"- **PostScript Name**: {metadata.postscript_name}",
            f"- **Copyright**: {metadata.copyright}",
            f"- **License**: {metadata.license_text}",
            f"- **License URL**: {metadata.license_url}",
            f"- **SHA-256**: `{checksum}`",
        ]
        if converted_name:
            lines.append(f"- **WOFF2 generated**: {converted_name}")
        if converted_hash_b64:
            lines.append(
                f"- **CSP-Compatible Font Hash**: `{csp_source(converted_hash_b64)}`"
            )
        self._append(self.manifest_path, "\n".join(lines) + "\n\n")

    def append_font_face(
        self,
        family_name: str,
        weight_declaration: str,
        style_declaration: str,
        preferred_source: Path | None,
        fallback_source: Path,
    ) -> None:
        """Append one ``@font-face`` rule.

        The WOFF2 source, when present, is listed first; the original file is
        always the last entry of ``src``.
        """
        sources = [p for p in (preferred_source, fallback_source) if p is not None]
        src = ",\n       ".join(
            f"url('./{p.name}') format('{css_format(p)}')" for p in sources
        )
        self._append(
            self.stylesheet_path,
            "@font-face {\n"
            f"  font-family: {css_string(family_name)};\n"
            f"  src: {src};\n"
            f"  {weight_declaration}\n"
            f"  {style_declaration}\n"
            "  font-display: swap;\n"
            "}\n",
        )

    # -----------------------
    # Footer
    # -----------------------
    def append_footer(self, stylesheet_hash_b64: str) -> None:
        """Close the manifest with the stylesheet integrity data and usage notes."""
        css_name = self.stylesheet_path.name
        source = csp_source(stylesheet_hash_b64)
        self._append(
            self.manifest_path,
            "\n"
            "## CSS File Integrity\n"
            f"- **File**: {css_name}\n"
            f"- **SHA-256**: `{stylesheet_hash_b64}`\n"
            f"- **CSP Header**: `Content-Security-Policy: font-src 'self' '{source}'`\n"
            f'- **HTML Link**: `<link rel="stylesheet" href="./{css_name}" '
            f'integrity="{source}" crossorigin="anonymous">`\n'
            "\n"
            "## Usage Instructions\n"
            "1. Copy all files to your web server\n"
            f'2. Include the CSS file in your HTML: `<link rel="stylesheet" href="./{css_name}">`\n'
            "3. Use the font families in your CSS as specified in the @font-face declarations\n"
            "\n"
            "## Educational Purpose\n"
            "This tool was created for educational purposes to demonstrate font metadata extraction,\n"
            "web font optimization, and self-hosting best practices. Always respect font licenses\n"
            "and attribution requirements.\n",
        )
