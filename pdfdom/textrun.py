"""Grouping of positioned glyphs into styled text runs.

Glyphs arrive in content stream order, already placed in output coordinates.
Consecutive glyphs sharing a style and lying close to each other on one
baseline are collected into a run; every other glyph starts a new run.
"""

import logging
import unicodedata

from pdfdom.fonttable import FontRef, FontTable
from pdfdom.layout import DEFAULT_FONT_STYLE, DEFAULT_FONT_WEIGHT, BoxStyle, DOMParams
from pdfdom.utils import DEFAULT_COLOR, TRANSPARENT_COLOR

log = logging.getLogger(__name__)

# Font families that browsers have locally; these are never embedded.
KNOWN_FONT_FAMILIES = (
    "Times New Roman",
    "Times",
    "Garamond",
    "Helvetica",
    "Arial Narrow",
    "Arial",
    "Verdana",
    "Courier New",
    "MS Sans Serif",
)

# (name substring, font-weight, font-style), the first match wins
FONT_NAME_STYLES = (
    ("normal", "normal", "normal"),
    ("roman", "normal", "normal"),
    ("bold", "bold", "normal"),
    ("italic", "normal", "italic"),
    ("bolditalic", "bold", "italic"),
)

# Text rendering modes (Tr) that paint the glyph interior / outline.
FILL_RENDER_MODES = (0, 2, 4, 6)
STROKE_RENDER_MODES = (1, 2, 5, 6)

REVERSED_DIRECTIONS = ("R", "AL", "RLE", "RLO")


def is_reversed(direction: str) -> bool:
    """Tells whether a bidirectional class denotes right-to-left text."""
    return direction in REVERSED_DIRECTIONS


def direction_of(text: str) -> str:
    return unicodedata.bidirectional(text[0]) if text else ""


def font_weight_and_style(fontname: str) -> tuple[str, str]:
    name = fontname.lower()
    for substring, weight, style in FONT_NAME_STYLES:
        if substring in name:
            return weight, style
    return DEFAULT_FONT_WEIGHT, DEFAULT_FONT_STYLE


def find_known_font_family(fontname: str) -> str | None:
    name = fontname.lower()
    for family in KNOWN_FONT_FAMILIES:
        if "".join(family.lower().split()) in name:
            return family
    return None


class GlyphEvent:
    """One positioned character in output coordinates.

    :param x: left edge of the glyph.
    :param y: baseline of the glyph.
    :param width: advance width.
    :param height: rendered height.
    :param text: the Unicode text of the glyph.
    :param font: the font the glyph is drawn with.
    :param font_size: the vertical scale of the font, used for metrics.
    :param font_size_pt: the font size in points, used for styling.
    :param diacritic: marks a combining diacritic; when None it is derived
        from the text.
    """

    def __init__(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        text: str,
        font: FontRef,
        font_size: float,
        font_size_pt: float | None = None,
        diacritic: bool | None = None,
    ) -> None:
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.text = text
        self.font = font
        self.font_size = font_size
        self.font_size_pt = font_size_pt if font_size_pt is not None else font_size
        if diacritic is None:
            diacritic = bool(text) and all(unicodedata.combining(c) for c in text)
        self.diacritic = diacritic

    def __repr__(self) -> str:
        return (
            f"<GlyphEvent {self.text!r} x={self.x:.3f} y={self.y:.3f} "
            f"w={self.width:.3f} font={self.font.name!r}>"
        )

    @property
    def direction(self) -> str:
        return direction_of(self.text)

    def is_whitespace(self) -> bool:
        return not self.text.strip()

    def overlaps(self, other: "GlyphEvent") -> bool:
        """Tells whether the horizontal extents of two glyphs overlap."""
        x1 = self.x + self.width
        ox1 = other.x + other.width
        return other.x < x1 and self.x < ox1 or (
            other.width == 0 and self.x <= other.x <= x1
        )

    def with_diacritic(self, diacritic: "GlyphEvent") -> "GlyphEvent":
        """Returns a copy of this glyph with the diacritic combined into it."""
        text = unicodedata.normalize("NFC", self.text + diacritic.text)
        return GlyphEvent(
            self.x,
            self.y,
            self.width,
            self.height,
            text,
            self.font,
            self.font_size,
            self.font_size_pt,
            diacritic=False,
        )


class TextState:
    """Text related graphics state forwarded by the event source.

    Colours are CSS colour strings; spacings are already in output units.
    """

    def __init__(
        self,
        fill_color: str = DEFAULT_COLOR,
        stroke_color: str = DEFAULT_COLOR,
        render_mode: int = 0,
        word_spacing: float = 0,
        letter_spacing: float = 0,
    ) -> None:
        self.fill_color = fill_color
        self.stroke_color = stroke_color
        self.render_mode = render_mode
        self.word_spacing = word_spacing
        self.letter_spacing = letter_spacing

    def __repr__(self) -> str:
        return (
            f"<TextState fill={self.fill_color} stroke={self.stroke_color} "
            f"mode={self.render_mode}>"
        )

    def copy(self) -> "TextState":
        obj = self.__class__()
        obj.__dict__.update(self.__dict__)
        return obj

    def is_fill_enabled(self) -> bool:
        return self.render_mode in FILL_RENDER_MODES

    def is_stroke_enabled(self) -> bool:
        return self.render_mode in STROKE_RENDER_MODES


def _scaled(value: float, font_size: float) -> float:
    return value / 1000 * font_size


class TextMetrics:
    """Vertical extent and width of a run, grown glyph by glyph."""

    def __init__(self, glyph: GlyphEvent) -> None:
        self.x = glyph.x
        self.baseline = glyph.y
        self.width = glyph.width
        self.max_height = glyph.height
        self.point_size = glyph.font_size_pt
        self.font = glyph.font
        self.font_size = glyph.font_size
        self.ascent = self._ascent(glyph.font, glyph.font_size)
        self.descent = self._descent(glyph.font, glyph.font_size)

    def __repr__(self) -> str:
        return (
            f"<TextMetrics x={self.x:.3f} top={self.top:.3f} "
            f"bottom={self.bottom:.3f} width={self.width:.3f}>"
        )

    @staticmethod
    def _ascent(font: FontRef, font_size: float) -> float:
        return _scaled(font.descriptor.ascent, font_size)

    @staticmethod
    def _descent(font: FontRef, font_size: float) -> float:
        descent = _scaled(font.descriptor.descent, font_size)
        # a positive descent is invalid
        return -descent if descent > 0 else descent

    def append(self, glyph: GlyphEvent) -> None:
        self.width += glyph.x - (self.x + self.width) + glyph.width
        self.max_height = max(self.max_height, glyph.height)
        self.ascent = max(self.ascent, self._ascent(glyph.font, glyph.font_size))
        self.descent = min(self.descent, self._descent(glyph.font, glyph.font_size))

    @property
    def bbox_ascent(self) -> float:
        return _scaled(self.font.descriptor.bbox[3], self.font_size)

    @property
    def bbox_descent(self) -> float:
        return _scaled(self.font.descriptor.bbox[1], self.font_size)

    @property
    def top(self) -> float:
        ascent = self.ascent if self.ascent != 0 else self.bbox_ascent
        return self.baseline - ascent

    @property
    def bottom(self) -> float:
        descent = self.descent if self.descent != 0 else self.bbox_descent
        return self.baseline - descent

    @property
    def height(self) -> float:
        return self.bottom - self.top


class TextRun:
    """A finished run: its text in visual order, style and metrics."""

    def __init__(self, text: str, style: BoxStyle, metrics: TextMetrics) -> None:
        self.text = text
        self.style = style
        self.metrics = metrics

    def __repr__(self) -> str:
        return f"<TextRun {self.text!r} {self.style.css()}>"


class TextRunBuilder:
    """Collects glyphs into runs.

    :param font_table: resolves embedded font aliases; when None, font
        families fall back to the PDF font names.
    :param params: the split thresholds and output unit.
    """

    def __init__(
        self,
        font_table: FontTable | None = None,
        params: DOMParams | None = None,
    ) -> None:
        self.font_table = font_table
        self.params = params if params is not None else DOMParams()
        self.style = BoxStyle(self.params.unit)
        self.run_style: BoxStyle | None = None
        self.chars: list[str] = []
        self.metrics: TextMetrics | None = None
        self.last_glyph: GlyphEvent | None = None
        self.last_diacritic: GlyphEvent | None = None

    def add_glyph(self, glyph: GlyphEvent, state: TextState) -> TextRun | None:
        """Adds a glyph; returns the run it finished, if any."""
        if glyph.diacritic:
            self.last_diacritic = glyph
            return None
        if glyph.is_whitespace():
            return None
        if self.last_diacritic is not None:
            if glyph.overlaps(self.last_diacritic):
                glyph = glyph.with_diacritic(self.last_diacritic)
            self.last_diacritic = None

        last = self.last_glyph
        split = last is None
        if last is not None:
            distx = glyph.x - (last.x + last.width)
            disty = glyph.y - last.y
            split = (
                distx > self.params.max_gap
                or distx < self.params.min_gap
                or abs(disty) > self.params.max_vertical_delta
                or is_reversed(glyph.direction) != is_reversed(last.direction)
            )
        self.update_style(glyph, state)
        if self.style != self.run_style:
            split = True

        finished = None
        if split:
            finished = self._finish_run()
            self.run_style = self.style.copy()
        self.chars.append(glyph.text)
        if self.metrics is None:
            self.metrics = TextMetrics(glyph)
        else:
            self.metrics.append(glyph)
        self.last_glyph = glyph
        return finished

    def finish(self) -> TextRun | None:
        """Finishes the open run at the end of a page."""
        run = self._finish_run()
        self.run_style = None
        self.last_glyph = None
        self.last_diacritic = None
        return run

    def update_style(self, glyph: GlyphEvent, state: TextState) -> None:
        style = self.style
        fontname = glyph.font.name
        style.font_size = glyph.font_size_pt
        style.line_height = glyph.height
        if fontname:
            (style.font_weight, style.font_style) = font_weight_and_style(fontname)
            style.font_family = self.resolve_family(glyph.font)
        style.word_spacing = state.word_spacing
        style.letter_spacing = state.letter_spacing
        if state.is_fill_enabled():
            style.color = state.fill_color
        else:
            style.color = TRANSPARENT_COLOR
        if state.is_stroke_enabled():
            style.stroke_color = state.stroke_color
        else:
            style.stroke_color = TRANSPARENT_COLOR

    def resolve_family(self, font: FontRef) -> str:
        family = find_known_font_family(font.name)
        if family is None and self.font_table is not None:
            family = self.font_table.resolve(font.identity)
        if family is None:
            family = font.name
        return family

    def _finish_run(self) -> TextRun | None:
        if not self.chars or self.metrics is None or self.run_style is None:
            return None
        text = "".join(self.chars)
        if is_reversed(direction_of(text)):
            text = text[::-1]
        metrics = self.metrics
        style = self.run_style
        style.left = metrics.x
        style.top = metrics.top
        style.line_height = metrics.height
        self.chars = []
        self.metrics = None
        # the style object now belongs to the run
        self.run_style = style.copy()
        return TextRun(text, style, metrics)
