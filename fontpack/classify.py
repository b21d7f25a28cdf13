"""Map a name-table subfamily to CSS ``font-weight`` / ``font-style`` values."""

DEFAULT_WEIGHT = 400

#: Exact, case-sensitive subfamily → CSS weight.
WEIGHT_MAP: dict[str, int] = {
    "Thin": 100,
    "Hairline": 100,
    "ExtraLight": 200,
    "UltraLight": 200,
    "Light": 300,
    "Regular": 400,
    "Normal": 400,
    "Medium": 500,
    "SemiBold": 600,
    "DemiBold": 600,
    "Bold": 700,
    "ExtraBold": 800,
    "UltraBold": 800,
    "Black": 900,
    "Heavy": 900,
}

ITALIC_MARKERS = ("Italic", "Oblique")


def font_weight(subfamily: str) -> int:
    """Return the CSS weight for ``subfamily``; unmatched names map to 400.

    Only whole-string matches count: ``"Bold Italic"`` is not ``"Bold"``.
    """
    return WEIGHT_MAP.get(subfamily, DEFAULT_WEIGHT)


def font_style(subfamily: str) -> str:
    """Return ``"italic"`` if an italic marker occurs anywhere, else ``"normal"``."""
    if any(marker in subfamily for marker in ITALIC_MARKERS):
        return "italic"
    return "normal"


def weight_declaration(subfamily: str) -> str:
    return f"font-weight: {font_weight(subfamily)};"


def style_declaration(subfamily: str) -> str:
    return f"font-style: {font_style(subfamily)};"
