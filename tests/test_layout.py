"""Tests for monoassist.rendering.layout — classification, wrapping and pagination."""

from __future__ import annotations

from datetime import date

import pytest
from reportlab.lib.units import mm

from monoassist.rendering.layout import (
    A4_GEOMETRY,
    DEFAULT_FONTS,
    DOCUMENT_TITLE,
    FOOTER_CAPTION,
    HEADER_HEIGHT,
    KIND_METRICS,
    LineKind,
    PageGeometry,
    Paginator,
    Rect,
    RuleLine,
    Span,
    classify_line,
    paginate,
    parse_inline,
    strip_emphasis,
    wrap_spans,
)
from monoassist.rendering.styles import get_style

BODY_ROLES = {kind.value for kind in LineKind}
TODAY = date(2024, 3, 1)


def _paginate(lines, style="CLASSIC", geometry=A4_GEOMETRY):
    return paginate(lines, get_style(style), geometry, source_name="lecture.txt", generated_on=TODAY)


def _body(page):
    return [line for line in page.text_lines() if line.role in BODY_ROLES]


def _capacity(geometry=A4_GEOMETRY) -> int:
    """Number of one-line paragraphs that fit on page one."""
    pages = _paginate([f"Line {i}" for i in range(200)], geometry=geometry)
    return len(_body(pages[0]))


# ── Classification ───────────────────────────────────────────────────────


class TestClassifyLine:
    @pytest.mark.parametrize(
        ("line", "kind", "text"),
        [
            ("## Introduction", LineKind.SECTION, "Introduction"),
            ("### Details", LineKind.SUBSECTION, "Details"),
            ("- item", LineKind.BULLET, "item"),
            ("* item", LineKind.BULLET, "item"),
            ("   - indented item", LineKind.BULLET, "indented item"),
            ("", LineKind.BLANK, ""),
            ("   \t", LineKind.BLANK, ""),
            ("Plain text.", LineKind.PARAGRAPH, "Plain text."),
            ("**Term**: definition", LineKind.PARAGRAPH, "**Term**: definition"),
            ("-no space", LineKind.PARAGRAPH, "-no space"),
            ("#### too deep", LineKind.PARAGRAPH, "#### too deep"),
            ("##no space", LineKind.PARAGRAPH, "##no space"),
        ],
    )
    def test_kinds(self, line, kind, text):
        assert classify_line(line) == (kind, text)


class TestParseInline:
    def test_plain(self):
        assert parse_inline("just text") == [Span("just text")]

    def test_bold_span(self):
        assert parse_inline("a **b** c") == [Span("a "), Span("b", bold=True), Span(" c")]

    def test_multiple_spans(self):
        spans = parse_inline("**x** and **y**")
        assert [s.text for s in spans if s.bold] == ["x", "y"]

    def test_unmatched_marker_literal(self):
        assert parse_inline("**unclosed") == [Span("**unclosed")]

    def test_odd_markers(self):
        assert parse_inline("**a**b**") == [Span("a", bold=True), Span("b**")]

    def test_strip_emphasis(self):
        assert strip_emphasis("**Term**: a **b**") == "Term: a b"


class TestWrapSpans:
    def test_short_line_single(self):
        lines = wrap_spans([Span("hello world")], 500, 11, DEFAULT_FONTS.measure)
        assert lines == [[Span("hello world")]]

    def test_wraps_within_width(self):
        text = " ".join(["lorem"] * 80)
        width = 200
        lines = wrap_spans([Span(text)], width, 11, DEFAULT_FONTS.measure)
        assert len(lines) > 1
        for line in lines:
            assert sum(DEFAULT_FONTS.measure(s.text, s.bold, 11) for s in line) <= width + 1e-6
        assert " ".join("".join(s.text for s in line) for line in lines) == text

    def test_long_word_broken(self):
        word = "x" * 300
        lines = wrap_spans([Span(word)], 100, 11, DEFAULT_FONTS.measure)
        assert len(lines) > 1
        assert "".join(line[0].text for line in lines) == word

    def test_styles_preserved_across_wrap(self):
        spans = [Span("alpha "), Span("beta gamma", bold=True), Span(" delta")]
        lines = wrap_spans(spans, 60, 11, DEFAULT_FONTS.measure)
        bold_words = [s.text for line in lines for s in line if s.bold]
        assert " ".join(bold_words).split() == ["beta", "gamma"]

    def test_empty(self):
        assert wrap_spans([Span("   ")], 100, 11, DEFAULT_FONTS.measure) == []


# ── Pagination ───────────────────────────────────────────────────────────


class TestHeaderAndFooter:
    def test_header_on_first_page_only(self):
        pages = _paginate([f"Line {i}" for i in range(100)])
        assert len(pages) > 1
        assert [line.text for line in pages[0].text_lines("title")] == [DOCUMENT_TITLE]
        meta = pages[0].text_lines("meta")[0].text
        assert "lecture.txt" in meta
        assert "01.03.2024" in meta
        assert "CLASSIC" in meta
        assert any(isinstance(item, RuleLine) for item in pages[0].items)
        for page in pages[1:]:
            assert page.text_lines("title") == []
            assert page.text_lines("meta") == []

    def test_footer_on_every_page(self):
        pages = _paginate([f"Line {i}" for i in range(100)])
        for page in pages:
            footer = [line.text for line in page.text_lines("footer")]
            assert FOOTER_CAPTION in footer
            assert f"{page.number} / {len(pages)}" in footer

    def test_rule_uses_style(self):
        style = get_style("ACADEMIC")
        [rule] = [i for i in _paginate(["x"], "ACADEMIC")[0].items if isinstance(i, RuleLine)]
        assert rule.weight == style.rule_weight
        assert rule.color == style.accent_color

    def test_empty_document_single_page(self):
        pages = _paginate([])
        assert len(pages) == 1
        assert _body(pages[0]) == []


class TestOnePageBoundary:
    """Capacity is derived from the layout, then probed at k and k + 1."""

    def test_capacity_matches_geometry(self):
        metrics = KIND_METRICS[LineKind.PARAGRAPH]
        room = A4_GEOMETRY.body_bottom - A4_GEOMETRY.body_top - HEADER_HEIGHT
        step = metrics.line_height + metrics.space_after
        expected = int((room - metrics.line_height) // step) + 1
        assert _capacity() == expected

    def test_exactly_k_lines_one_page(self):
        k = _capacity()
        pages = _paginate([f"Line {i}" for i in range(k)])
        assert len(pages) == 1
        assert [line.text for line in _body(pages[0])] == [f"Line {i}" for i in range(k)]

    def test_k_plus_one_lines_two_pages(self):
        k = _capacity()
        pages = _paginate([f"Line {i}" for i in range(k + 1)])
        assert len(pages) == 2
        assert [line.text for line in _body(pages[1])] == [f"Line {k}"]

    def test_exact_fit_custom_geometry(self):
        n = 5
        metrics = KIND_METRICS[LineKind.PARAGRAPH]
        margin, footer = 20 * mm, 10 * mm
        height = (
            margin
            + HEADER_HEIGHT
            + (n - 1) * (metrics.line_height + metrics.space_after)
            + metrics.line_height
            + footer
            + margin
        )
        geometry = PageGeometry(width=A4_GEOMETRY.width, height=height, margin=margin, footer_height=footer)
        assert len(_paginate([f"L{i}" for i in range(n)], geometry=geometry)) == 1
        assert len(_paginate([f"L{i}" for i in range(n + 1)], geometry=geometry)) == 2


class TestOverflow:
    def test_nothing_below_bottom_margin(self, sample_summary):
        doc = (sample_summary + "\n") * 40
        pages = _paginate(doc.splitlines(), "CREATIVE")
        for page in pages:
            for line in _body(page):
                assert line.baseline <= A4_GEOMETRY.body_bottom

    def test_block_moves_whole_to_next_page(self):
        k = _capacity()
        long_para = " ".join(["word"] * 60)  # wraps to a few lines
        pages = _paginate([f"Line {i}" for i in range(k - 1)] + [long_para])
        assert len(pages) == 2
        assert [line.text for line in _body(pages[0])] == [f"Line {i}" for i in range(k - 1)]
        assert len(_body(pages[1])) > 1

    def test_block_taller_than_page_split_without_loss(self):
        words = [f"w{i}" for i in range(3000)]
        pages = _paginate([" ".join(words)])
        assert len(pages) > 1
        emitted = " ".join(line.text for page in pages for line in _body(page)).split()
        assert emitted == words

    def test_all_text_preserved(self, sample_summary):
        lines = (sample_summary + "\n") * 25
        pages = _paginate(lines.splitlines())
        emitted = " ".join(line.text for page in pages for line in _body(page)).split()
        bullet = get_style("CLASSIC").bullet_glyph
        expected = []
        for raw in lines.splitlines():
            kind, text = classify_line(raw)
            if kind is LineKind.BULLET:
                expected.append(bullet)
            expected.extend(strip_emphasis(text).split())
        assert emitted == expected


class TestStyling:
    def test_heading_bold_without_markers(self):
        [line] = _body(_paginate(["## **Key** ideas"])[0])
        assert line.role == "section"
        assert line.text == "Key ideas"
        assert all(span.bold for span in line.spans)
        assert line.font_size == KIND_METRICS[LineKind.SECTION].font_size

    def test_heading_sizes_ordered(self):
        body = _body(_paginate(["## A", "### B", "C", "- D"])[0])
        sizes = {line.role: line.font_size for line in body}
        assert sizes["section"] > sizes["subsection"] > sizes["paragraph"]
        assert sizes["paragraph"] == sizes["bullet"]

    def test_bold_span_uses_heading_colour(self):
        style = get_style("CREATIVE")
        [line] = _body(_paginate(["plain **strong** plain"], "CREATIVE")[0])
        assert [s.bold for s in line.spans] == [False, True, False]
        assert line.emphasis_color == style.heading_color
        assert line.color == style.text_color

    @pytest.mark.parametrize("style", ["CLASSIC", "ACADEMIC", "CREATIVE"])
    def test_bullet_glyph_and_indent(self, style):
        [line] = _body(_paginate(["- item"], style)[0])
        assert line.text == f"{get_style(style).bullet_glyph} item"
        assert line.x == A4_GEOMETRY.margin + KIND_METRICS[LineKind.BULLET].indent

    def test_sidebar_on_every_page_for_creative(self):
        pages = _paginate([f"Line {i}" for i in range(100)], "CREATIVE")
        for page in pages:
            rects = [i for i in page.items if isinstance(i, Rect)]
            assert len(rects) == 1
            assert rects[0].height == A4_GEOMETRY.height
            assert page.items[0] is rects[0]

    def test_no_sidebar_for_classic(self):
        pages = _paginate([f"Line {i}" for i in range(100)], "CLASSIC")
        assert not any(isinstance(i, Rect) for page in pages for i in page.items)

    def test_blank_lines_add_space(self):
        with_gap = _body(_paginate(["A", "", "B"])[0])
        without = _body(_paginate(["A", "B"])[0])
        assert with_gap[1].baseline - without[1].baseline == pytest.approx(4 * mm)


class TestDeterminism:
    def test_idempotent(self, sample_summary):
        first = _paginate(sample_summary.splitlines() * 10, "CREATIVE")
        second = _paginate(sample_summary.splitlines() * 10, "CREATIVE")
        assert first == second

    def test_paginator_reusable(self, sample_summary):
        paginator = Paginator(get_style("CLASSIC"))
        a = paginator.paginate(sample_summary, generated_on=TODAY)
        b = paginator.paginate(sample_summary, generated_on=TODAY)
        assert a == b

    def test_string_and_lines_equivalent(self, sample_summary):
        assert _paginate(sample_summary) == _paginate(sample_summary.splitlines())
