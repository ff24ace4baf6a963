"""Visual style profiles for exported summaries.

A profile is a row in :data:`STYLE_PROFILES`; adding a style means adding a
row here and a member to :class:`~monoassist.models.PdfStyle`.
"""

from __future__ import annotations

from dataclasses import dataclass

from reportlab.lib.units import mm

from monoassist.models import PdfStyle


@dataclass(frozen=True)
class StyleProfile:
    """Colours are hex strings; the PDF writer converts them."""

    name: str
    accent_color: str  # separator rule
    heading_color: str  # title, ## headings, **bold** spans
    rule_weight: float  # points
    show_sidebar: bool
    bullet_glyph: str
    sidebar_color: str = "#D8F3DC"
    sidebar_width: float = 5 * mm
    subheading_color: str = "#505050"
    text_color: str = "#3C3C3C"
    meta_color: str = "#969696"


STYLE_PROFILES: dict[PdfStyle, StyleProfile] = {
    PdfStyle.CLASSIC: StyleProfile(
        name=PdfStyle.CLASSIC.value,
        accent_color="#E6E6FA",  # lavender
        heading_color="#4A4A4A",
        rule_weight=0.8 * mm,
        show_sidebar=False,
        bullet_glyph="•",
    ),
    PdfStyle.ACADEMIC: StyleProfile(
        name=PdfStyle.ACADEMIC.value,
        accent_color="#282828",
        heading_color="#000000",
        rule_weight=0.3 * mm,
        show_sidebar=False,
        bullet_glyph="–",
    ),
    PdfStyle.CREATIVE: StyleProfile(
        name=PdfStyle.CREATIVE.value,
        accent_color="#B0E0E6",  # powder blue
        heading_color="#008080",  # teal
        rule_weight=1.5 * mm,
        show_sidebar=True,
        bullet_glyph="›",
    ),
}


def get_style(style: PdfStyle | str) -> StyleProfile:
    """Look up the profile for *style* (enum member or its string value)."""
    return STYLE_PROFILES[PdfStyle(style)]
