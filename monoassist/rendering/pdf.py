"""PDF rendering: font registration, page drawing, and export.

Layout decisions are made by :mod:`monoassist.rendering.layout`; this module
only resolves fonts and paints the positioned items onto a ReportLab canvas.
"""

from __future__ import annotations

import io
import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import requests
from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from monoassist.config import AppConfig, get_settings
from monoassist.core.log import safe_print, timed
from monoassist.models import PdfStyle
from monoassist.rendering.layout import (
    A4_GEOMETRY,
    DEFAULT_FONTS,
    DOCUMENT_TITLE,
    FontSet,
    Page,
    PageGeometry,
    Paginator,
    Rect,
    RuleLine,
    TextLine,
)
from monoassist.rendering.styles import get_style

_HEADING_ROLES = frozenset({"title", "section", "subsection"})


class RenderError(Exception):
    """The summary could not be turned into a PDF."""


@dataclass(frozen=True)
class ExportedDocument:
    filename: str
    content: bytes


# ── Font state (module-level singleton) ──────────────────────────────────

_resolved_fonts: FontSet | None = None

REMOTE_FAMILY = "MonoRoboto"

_LOCAL_CANDIDATES = [
    {
        "family": "Arial",
        "regular": [
            "C:\\Windows\\Fonts\\arial.ttf",
            "/Library/Fonts/Arial.ttf",
            "/System/Library/Fonts/Supplemental/Arial.ttf",
        ],
        "bold": [
            "C:\\Windows\\Fonts\\arialbd.ttf",
            "/Library/Fonts/Arial Bold.ttf",
            "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        ],
    },
    {
        "family": "DejaVuSans",
        "regular": ["/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "/usr/local/share/fonts/DejaVuSans.ttf"],
        "bold": [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "/usr/local/share/fonts/DejaVuSans-Bold.ttf",
        ],
    },
    {
        "family": "LiberationSans",
        "regular": [
            "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
            "/usr/share/fonts/truetype/liberation2/LiberationSans-Regular.ttf",
        ],
        "bold": [
            "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
            "/usr/share/fonts/truetype/liberation2/LiberationSans-Bold.ttf",
        ],
    },
]


def _first(paths: list[str]) -> str:
    for p in paths:
        if os.path.exists(p):
            return p
    return ""


def _register_ttf(name: str, path: str | Path) -> bool:
    if name in pdfmetrics.getRegisteredFontNames():
        return True
    try:
        pdfmetrics.registerFont(TTFont(name, str(path)))
    except Exception as exc:
        safe_print(f"⚠️ Could not register font {name} from {path}: {exc}", logging.WARNING)
        return False
    return True


def _download_font(url: str, dest: Path, timeout: float) -> Path | None:
    """Fetch *url* into *dest* unless a cached copy already exists."""
    if dest.exists() and dest.stat().st_size > 0:
        return dest
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        safe_print(f"⚠️ Font download failed ({url}): {exc}", logging.WARNING)
        return None
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(resp.content)
    except OSError as exc:
        safe_print(f"⚠️ Could not cache font at {dest}: {exc}", logging.WARNING)
        return None
    return dest


def _remote_fonts(cfg: AppConfig) -> FontSet | None:
    if not cfg.font_url:
        return None
    cache_dir = Path(cfg.data_dir) / "fonts"
    regular_path = _download_font(cfg.font_url, cache_dir / f"{REMOTE_FAMILY}-Regular.ttf", cfg.font_timeout)
    if regular_path is None:
        return None
    if not _register_ttf(REMOTE_FAMILY, regular_path):
        # A truncated cache file would fail every time
        regular_path.unlink(missing_ok=True)
        return None

    bold_name = f"{REMOTE_FAMILY}-Bold"
    bold_path = (
        _download_font(cfg.font_bold_url, cache_dir / f"{bold_name}.ttf", cfg.font_timeout)
        if cfg.font_bold_url
        else None
    )
    if bold_path is None or not _register_ttf(bold_name, bold_path):
        bold_name = REMOTE_FAMILY
    return FontSet(regular=REMOTE_FAMILY, bold=bold_name)


def _local_fonts() -> FontSet | None:
    for cand in _LOCAL_CANDIDATES:
        regular_path = _first(cand["regular"])
        if not regular_path:
            continue
        family = cand["family"]
        if not _register_ttf(family, regular_path):
            continue
        bold_name = f"{family}-Bold"
        bold_path = _first(cand["bold"])
        if not bold_path or not _register_ttf(bold_name, bold_path):
            bold_name = family
        return FontSet(regular=family, bold=bold_name)
    return None


def resolve_fonts(*, refresh: bool = False) -> FontSet:
    """Return the fonts used for rendering, registering them on first use.

    Order: the configured remote TTF (cached under ``data_dir/fonts``), a
    local Unicode font (Arial → DejaVu → Liberation), then built-in Helvetica.
    """
    global _resolved_fonts

    if _resolved_fonts is not None and not refresh:
        return _resolved_fonts

    fonts = _remote_fonts(get_settings()) or _local_fonts()
    if fonts is None:
        safe_print("⚠️ No Unicode font available, falling back to Helvetica", logging.WARNING)
        fonts = DEFAULT_FONTS
    _resolved_fonts = fonts
    return fonts


# ── Drawing ──────────────────────────────────────────────────────────────


def _draw_text(c: canvas.Canvas, line: TextLine, page_height: float, fonts: FontSet) -> None:
    heading = line.role in _HEADING_ROLES
    x = line.x
    if line.align == "right":
        x -= sum(fonts.measure(span.text, span.bold, line.font_size) for span in line.spans)
    y = page_height - line.baseline
    for span in line.spans:
        font = fonts.font_for(span.bold)
        color = line.emphasis_color if span.bold and not heading else line.color
        c.setFont(font, line.font_size)
        c.setFillColor(colors.HexColor(color))
        c.drawString(x, y, span.text)
        x += pdfmetrics.stringWidth(span.text, font, line.font_size)


def draw_pages(pages: list[Page], geometry: PageGeometry, fonts: FontSet) -> bytes:
    """Paint laid-out pages and return the PDF bytes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(geometry.width, geometry.height))
    c.setTitle(DOCUMENT_TITLE)
    c.setCreator(get_settings().app_title)
    for page in pages:
        for item in page.items:
            if isinstance(item, Rect):
                c.setFillColor(colors.HexColor(item.color))
                c.rect(item.x, geometry.height - item.y - item.height, item.width, item.height, stroke=0, fill=1)
            elif isinstance(item, RuleLine):
                c.setStrokeColor(colors.HexColor(item.color))
                c.setLineWidth(item.weight)
                c.line(item.x1, geometry.height - item.y, item.x2, geometry.height - item.y)
            else:
                _draw_text(c, item, geometry.height, fonts)
        c.showPage()
    c.save()
    return buf.getvalue()


# ── Public API ───────────────────────────────────────────────────────────


def output_filename(source_name: str, style: PdfStyle | str) -> str:
    """``"Лекция 1.txt"`` + CLASSIC → ``"Лекция_1_summary_classic.pdf"``."""
    stem = source_name.rsplit(".", 1)[0] if "." in source_name else source_name
    stem = re.sub(r"\s+", "_", stem.strip()) or "summary"
    return f"{stem}_summary_{PdfStyle(style).value.lower()}.pdf"


def render_summary_pdf(
    summary: str,
    style: PdfStyle | str,
    *,
    source_name: str = "",
    generated_on: date | None = None,
    geometry: PageGeometry = A4_GEOMETRY,
    fonts: FontSet | None = None,
) -> bytes:
    """Lay out *summary* in *style* and return the PDF bytes.

    Raises:
        RenderError: if layout or drawing fails.
    """
    profile = get_style(style)
    with timed("render_pdf", style=profile.name):
        try:
            fonts = fonts or resolve_fonts()
            pages = Paginator(profile, geometry, fonts=fonts).paginate(
                summary, source_name=source_name, generated_on=generated_on
            )
            return draw_pages(pages, geometry, fonts)
        except Exception as exc:
            raise RenderError(f"PDF rendering failed: {exc}") from exc


def export_summary(summary: str, style: PdfStyle | str, source_name: str) -> ExportedDocument:
    content = render_summary_pdf(summary, style, source_name=source_name)
    return ExportedDocument(filename=output_filename(source_name, style), content=content)
