import pytest

from pdfdom.fonttable import FontDescriptor, FontRef
from pdfdom.layout import DOMParams
from pdfdom.textrun import (
    GlyphEvent,
    TextMetrics,
    TextRunBuilder,
    TextState,
    find_known_font_family,
    font_weight_and_style,
    is_reversed,
)
from pdfdom.utils import TRANSPARENT_COLOR

HELVETICA = FontRef(
    "Helvetica",
    subtype="Type1",
    descriptor=FontDescriptor(718, -207, (-166, -225, 1000, 931)),
)
BOLD = FontRef("Helvetica-Bold", subtype="Type1", descriptor=HELVETICA.descriptor)


def glyph(text, x, y=100.0, width=5.0, font=HELVETICA, size=10.0):
    return GlyphEvent(x, y, width, size, text, font, size)


def run_texts(glyphs, state=None, params=None):
    builder = TextRunBuilder(params=params)
    state = state if state is not None else TextState()
    runs = [builder.add_glyph(g, state) for g in glyphs]
    runs.append(builder.finish())
    return [run.text for run in runs if run is not None]


@pytest.mark.parametrize(
    ("fontname", "expected"),
    [
        ("Helvetica", ("normal", "normal")),
        ("Times-Roman", ("normal", "normal")),
        ("Arial-BoldMT", ("bold", "normal")),
        ("Arial-ItalicMT", ("normal", "italic")),
        # "bold" is found before "bolditalic"
        ("Arial-BoldItalicMT", ("bold", "normal")),
    ],
)
def test_font_weight_and_style(fontname, expected):
    assert font_weight_and_style(fontname) == expected


def test_find_known_font_family():
    assert find_known_font_family("ABCDEF+TimesNewRomanPSMT") == "Times New Roman"
    assert find_known_font_family("Arial-BoldMT") == "Arial"
    assert find_known_font_family("CMR10") is None


def test_is_reversed():
    assert is_reversed("R")
    assert is_reversed("AL")
    assert not is_reversed("L")


class TestTextRunBuilder:
    def test_adjacent_glyphs_form_one_run(self):
        assert run_texts([glyph("a", 0), glyph("b", 5), glyph("c", 10)]) == ["abc"]

    def test_gap_splits(self):
        assert run_texts([glyph("a", 0), glyph("b", 7)]) == ["a", "b"]

    def test_small_kerning_does_not_split(self):
        assert run_texts([glyph("a", 0), glyph("b", 4.5)]) == ["ab"]

    def test_backward_jump_splits(self):
        assert run_texts([glyph("a", 20), glyph("b", 0)]) == ["a", "b"]

    def test_baseline_change_splits(self):
        assert run_texts([glyph("a", 0), glyph("b", 5, y=102)]) == ["a", "b"]

    def test_thresholds_come_from_params(self):
        params = DOMParams(max_gap=5)
        assert run_texts([glyph("a", 0), glyph("b", 7)], params=params) == ["ab"]

    def test_whitespace_is_dropped(self):
        glyphs = [glyph("a", 0), glyph(" ", 5), glyph("b", 8)]
        assert run_texts(glyphs) == ["a", "b"]

    def test_style_change_splits(self):
        glyphs = [glyph("a", 0), glyph("b", 5, font=BOLD)]
        assert run_texts(glyphs) == ["a", "b"]

    def test_font_size_change_splits(self):
        assert run_texts([glyph("a", 0), glyph("b", 5, size=12)]) == ["a", "b"]

    def test_color_change_splits(self):
        builder = TextRunBuilder()
        state = TextState()
        assert builder.add_glyph(glyph("a", 0), state) is None
        state.fill_color = "#ff0000"
        run = builder.add_glyph(glyph("b", 5), state)
        assert run is not None and run.text == "a"
        last = builder.finish()
        assert last is not None
        assert last.style.color == "#ff0000"

    def test_right_to_left_text_is_reversed(self):
        glyphs = [glyph("\u05d0", 0), glyph("\u05d1", 5)]
        assert run_texts(glyphs) == ["\u05d1\u05d0"]

    def test_direction_change_splits(self):
        assert run_texts([glyph("a", 0), glyph("\u05d0", 5)]) == ["a", "\u05d0"]

    def test_diacritic_joins_overlapping_glyph(self):
        glyphs = [glyph("\u0301", 6, width=0), glyph("e", 5)]
        assert run_texts(glyphs) == ["\u00e9"]

    def test_run_style_and_position(self):
        builder = TextRunBuilder()
        builder.add_glyph(glyph("a", 10), TextState())
        builder.add_glyph(glyph("b", 15), TextState())
        run = builder.finish()
        assert run is not None
        assert run.style.left == 10
        assert run.style.top == pytest.approx(100 - 7.18)
        assert run.style.line_height == pytest.approx(7.18 + 2.07)
        assert run.style.font_family == "Helvetica"
        assert run.style.font_size == 10
        assert run.metrics.width == 10

    def test_stroke_only_text(self):
        builder = TextRunBuilder()
        state = TextState(stroke_color="#00ff00", render_mode=1)
        builder.add_glyph(glyph("a", 0), state)
        run = builder.finish()
        assert run is not None
        assert run.style.color == TRANSPARENT_COLOR
        assert run.style.stroke_color == "#00ff00"
        assert "-webkit-text-stroke: #00ff00 1px ;" in run.style.css()

    def test_finish_twice(self):
        builder = TextRunBuilder()
        builder.add_glyph(glyph("a", 0), TextState())
        assert builder.finish() is not None
        assert builder.finish() is None


class TestTextMetrics:
    def test_bbox_fallback(self):
        font = FontRef("X", descriptor=FontDescriptor(0, 0, (0, -200, 1000, 800)))
        metrics = TextMetrics(glyph("a", 0, y=50, font=font))
        assert metrics.top == pytest.approx(42)
        assert metrics.bottom == pytest.approx(52)

    def test_positive_descent_is_negated(self):
        font = FontRef("X", descriptor=FontDescriptor(800, 200))
        metrics = TextMetrics(glyph("a", 0, y=50, font=font))
        assert metrics.bottom == pytest.approx(52)
