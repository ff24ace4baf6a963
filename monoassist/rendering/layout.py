"""Line classification, inline emphasis, word wrapping and pagination.

Everything here is pure computation: the output is a list of :class:`Page`
objects holding positioned text lines, rules and rectangles.  Drawing them
onto a PDF canvas is ``monoassist.rendering.pdf``'s job.

Accepted input grammar (anything else is a plain paragraph):

* ``## text``      section heading
* ``### text``     subsection heading
* ``- text`` / ``* text`` (after trimming)  bullet item
* empty line       vertical gap
* ``**text**``     emphasis span inside any line; unmatched ``**`` stay literal

Coordinates are points measured from the *top* of the page.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics

from monoassist.rendering.styles import StyleProfile

DOCUMENT_TITLE = "Конспект"
FOOTER_CAPTION = "Моно-ассистент • Создано для ясности"

_EPS = 1e-6
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_WHITESPACE = re.compile(r"(\s+)")


class LineKind(str, Enum):
    SECTION = "section"
    SUBSECTION = "subsection"
    BULLET = "bullet"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


@dataclass(frozen=True)
class Span:
    text: str
    bold: bool = False


# ── Classification & inline parsing ─────────────────────────────────────


def classify_line(line: str) -> tuple[LineKind, str]:
    """Return the line's kind and its text with the kind's prefix removed."""
    if line.startswith("## "):
        return LineKind.SECTION, line[3:].strip()
    if line.startswith("### "):
        return LineKind.SUBSECTION, line[4:].strip()
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK, ""
    if stripped.startswith(("- ", "* ")):
        return LineKind.BULLET, stripped[2:].strip()
    return LineKind.PARAGRAPH, stripped


def parse_inline(text: str) -> list[Span]:
    """Split *text* into plain and ``**bold**`` spans, markers removed."""
    spans: list[Span] = []
    pos = 0
    for match in _BOLD.finditer(text):
        if match.start() > pos:
            spans.append(Span(text[pos : match.start()]))
        spans.append(Span(match.group(1), bold=True))
        pos = match.end()
    if pos < len(text):
        spans.append(Span(text[pos:]))
    return spans


def strip_emphasis(text: str) -> str:
    return "".join(span.text for span in parse_inline(text))


def split_document(document: str | Iterable[str]) -> list[str]:
    if isinstance(document, str):
        return document.splitlines()
    return list(document)


# ── Fonts & measurement ─────────────────────────────────────────────────

Measure = Callable[[str, bool, float], float]


@dataclass(frozen=True)
class FontSet:
    """Names of fonts registered with ``pdfmetrics``."""

    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"

    def font_for(self, bold: bool) -> str:
        return self.bold if bold else self.regular

    def measure(self, text: str, bold: bool, size: float) -> float:
        return pdfmetrics.stringWidth(text, self.font_for(bold), size)


DEFAULT_FONTS = FontSet()


def _merge(spans: list[Span]) -> list[Span]:
    merged: list[Span] = []
    for span in spans:
        if merged and merged[-1].bold == span.bold:
            merged[-1] = Span(merged[-1].text + span.text, span.bold)
        else:
            merged.append(span)
    return merged


def _split_words(spans: list[Span]) -> list[list[Span]]:
    words: list[list[Span]] = []
    current: list[Span] = []
    for span in spans:
        for part in _WHITESPACE.split(span.text):
            if not part:
                continue
            if part.isspace():
                if current:
                    words.append(current)
                    current = []
            else:
                current.append(Span(part, span.bold))
    if current:
        words.append(current)
    return words


def _width(spans: list[Span], size: float, measure: Measure) -> float:
    return sum(measure(span.text, span.bold, size) for span in spans)


def _break_word(word: list[Span], max_width: float, size: float, measure: Measure) -> list[list[Span]]:
    chunks: list[list[Span]] = []
    current: list[Span] = []
    width = 0.0
    for piece in word:
        for ch in piece.text:
            ch_width = measure(ch, piece.bold, size)
            if current and width + ch_width > max_width + _EPS:
                chunks.append(_merge(current))
                current, width = [], 0.0
            current.append(Span(ch, piece.bold))
            width += ch_width
    if current:
        chunks.append(_merge(current))
    return chunks


def wrap_spans(spans: list[Span], max_width: float, size: float, measure: Measure) -> list[list[Span]]:
    """Greedy word wrap of styled spans; words wider than a line are broken by character.

    Runs of whitespace collapse to a single space.  Returns an empty list when
    there is no visible text.
    """
    lines: list[list[Span]] = []
    line: list[Span] = []
    width = 0.0
    for word in _split_words(spans):
        word_width = _width(word, size, measure)
        chunks = [word] if word_width <= max_width + _EPS else _break_word(word, max_width, size, measure)
        for chunk in chunks:
            chunk_width = _width(chunk, size, measure)
            # The separating space takes the style of the text before it
            gap = measure(" ", line[-1].bold, size) if line else 0.0
            if line and width + gap + chunk_width > max_width + _EPS:
                lines.append(_merge(line))
                line, width, gap = [], 0.0, 0.0
            if line:
                line.append(Span(" ", line[-1].bold))
                width += gap
            line.extend(chunk)
            width += chunk_width
    if line:
        lines.append(_merge(line))
    return lines


# ── Page model ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PageGeometry:
    width: float = A4[0]
    height: float = A4[1]
    margin: float = 20 * mm
    footer_height: float = 10 * mm

    @classmethod
    def from_page_size(cls, page_size: tuple[float, float]) -> PageGeometry:
        return cls(width=page_size[0], height=page_size[1])

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def body_top(self) -> float:
        return self.margin

    @property
    def body_bottom(self) -> float:
        return self.height - self.margin - self.footer_height


A4_GEOMETRY = PageGeometry()


@dataclass(frozen=True)
class KindMetrics:
    font_size: float
    line_height: float
    space_before: float
    space_after: float
    indent: float = 0.0
    width_reduction: float = 0.0


KIND_METRICS: dict[LineKind, KindMetrics] = {
    LineKind.SECTION: KindMetrics(18, 8 * mm, 5 * mm, 3 * mm),
    LineKind.SUBSECTION: KindMetrics(14, 7 * mm, 3 * mm, 2 * mm),
    LineKind.BULLET: KindMetrics(11, 6 * mm, 0, 1 * mm, indent=5 * mm, width_reduction=8 * mm),
    LineKind.PARAGRAPH: KindMetrics(11, 6 * mm, 0, 2 * mm),
}
BLANK_ADVANCE = 4 * mm

TITLE_METRICS = KindMetrics(26, 10 * mm, 0, 0)
META_METRICS = KindMetrics(9, 6 * mm, 0, 6 * mm)
RULE_ADVANCE = 12 * mm
FOOTER_FONT_SIZE = 8
# Title + one metadata line + rule, before the body starts on page one
HEADER_HEIGHT = TITLE_METRICS.line_height + META_METRICS.line_height + META_METRICS.space_after + RULE_ADVANCE


@dataclass(frozen=True)
class TextLine:
    role: str  # a LineKind value, or "title" / "meta" / "footer"
    x: float
    baseline: float
    font_size: float
    spans: tuple[Span, ...]
    color: str
    emphasis_color: str
    align: str = "left"

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass(frozen=True)
class RuleLine:
    x1: float
    x2: float
    y: float
    weight: float
    color: str


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    color: str


PageItem = TextLine | RuleLine | Rect


@dataclass
class Page:
    number: int
    items: list[PageItem] = field(default_factory=list)

    def text_lines(self, role: str | None = None) -> list[TextLine]:
        return [item for item in self.items if isinstance(item, TextLine) and (role is None or item.role == role)]

    def texts(self) -> list[str]:
        return [line.text for line in self.text_lines()]


def _baseline(top: float, metrics: KindMetrics) -> float:
    # Vertically centre the glyphs' x-height inside the line slot
    return top + (metrics.line_height + metrics.font_size * 0.6) / 2


# ── Paginator ───────────────────────────────────────────────────────────


class Paginator:
    """Lay a summary out across fixed-size pages for one style.

    Blocks are measured up front: a block that does not fit in the remaining
    space starts a new page.  A block taller than a whole page is split and
    each wrapped line is checked on its own, so nothing is dropped or drawn
    past the bottom margin.
    """

    def __init__(
        self,
        style: StyleProfile,
        geometry: PageGeometry = A4_GEOMETRY,
        *,
        fonts: FontSet = DEFAULT_FONTS,
        measure: Measure | None = None,
    ):
        self.style = style
        self.geometry = geometry
        self.fonts = fonts
        self.measure = measure or fonts.measure
        self._pages: list[Page] = []
        self._y = 0.0
        self._dirty = False

    def paginate(
        self,
        document: str | Iterable[str],
        *,
        source_name: str = "",
        generated_on: date | None = None,
    ) -> list[Page]:
        self._pages = []
        self._new_page()
        self._emit_header(source_name, generated_on or date.today())
        for line in split_document(document):
            self._emit_line(line)
        self._emit_footers()
        return self._pages

    # ── Internals ───────────────────────────────────────────────────────

    @property
    def _page(self) -> Page:
        return self._pages[-1]

    def _new_page(self) -> None:
        page = Page(number=len(self._pages) + 1)
        if self.style.show_sidebar:
            page.items.append(
                Rect(0, 0, self.style.sidebar_width, self.geometry.height, self.style.sidebar_color)
            )
        self._pages.append(page)
        self._y = self.geometry.body_top
        self._dirty = False

    def _fits(self, height: float) -> bool:
        return self._y + height <= self.geometry.body_bottom + _EPS

    def _place(self, role: str, spans: list[Span], metrics: KindMetrics, color: str, *, x: float | None = None):
        self._page.items.append(
            TextLine(
                role=role,
                x=self.geometry.margin + metrics.indent if x is None else x,
                baseline=_baseline(self._y, metrics),
                font_size=metrics.font_size,
                spans=tuple(spans),
                color=color,
                emphasis_color=self.style.heading_color,
            )
        )
        self._y += metrics.line_height
        self._dirty = True

    def _emit_header(self, source_name: str, generated_on: date) -> None:
        style, geo = self.style, self.geometry
        self._place("title", [Span(DOCUMENT_TITLE, bold=True)], TITLE_METRICS, style.heading_color)

        meta = f"Источник: {source_name or 'без названия'} • {generated_on:%d.%m.%Y} • Стиль: {style.name}"
        for sub in wrap_spans([Span(meta)], geo.content_width, META_METRICS.font_size, self.measure):
            self._place("meta", sub, META_METRICS, style.meta_color)
        self._y += META_METRICS.space_after

        self._page.items.append(RuleLine(geo.margin, geo.width - geo.margin, self._y, style.rule_weight, style.accent_color))
        self._y += RULE_ADVANCE

    def _emit_line(self, line: str) -> None:
        kind, text = classify_line(line)
        if kind is LineKind.BLANK:
            if self._dirty:
                self._y += BLANK_ADVANCE
            return

        metrics = KIND_METRICS[kind]
        spans = parse_inline(text)
        if kind in (LineKind.SECTION, LineKind.SUBSECTION):
            spans = [Span(span.text, bold=True) for span in spans]
        elif kind is LineKind.BULLET:
            spans = [Span(f"{self.style.bullet_glyph} "), *spans]

        width = self.geometry.content_width - metrics.width_reduction
        wrapped = wrap_spans(spans, width, metrics.font_size, self.measure)

        if self._dirty and not self._fits(metrics.space_before + len(wrapped) * metrics.line_height):
            self._new_page()
        self._y += metrics.space_before
        color = self._color_for(kind)
        for sub in wrapped:
            if self._dirty and not self._fits(metrics.line_height):
                self._new_page()
            self._place(kind.value, sub, metrics, color)
        self._y += metrics.space_after

    def _color_for(self, kind: LineKind) -> str:
        if kind is LineKind.SECTION:
            return self.style.heading_color
        if kind is LineKind.SUBSECTION:
            return self.style.subheading_color
        return self.style.text_color

    def _emit_footers(self) -> None:
        geo = self.geometry
        baseline = geo.height - geo.margin
        for page in self._pages:
            page.items.append(
                TextLine("footer", geo.margin, baseline, FOOTER_FONT_SIZE, (Span(FOOTER_CAPTION),),
                         self.style.meta_color, self.style.meta_color)
            )
            page.items.append(
                TextLine("footer", geo.width - geo.margin, baseline, FOOTER_FONT_SIZE,
                         (Span(f"{page.number} / {len(self._pages)}"),),
                         self.style.meta_color, self.style.meta_color, align="right")
            )


def paginate(
    document: str | Iterable[str],
    style: StyleProfile,
    geometry: PageGeometry = A4_GEOMETRY,
    *,
    fonts: FontSet = DEFAULT_FONTS,
    source_name: str = "",
    generated_on: date | None = None,
) -> list[Page]:
    """Convenience wrapper around :class:`Paginator`."""
    return Paginator(style, geometry, fonts=fonts).paginate(
        document, source_name=source_name, generated_on=generated_on
    )
