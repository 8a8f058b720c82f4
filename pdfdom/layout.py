"""The produced box tree and the parameters controlling its construction."""

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from pdfdom.fontconv import FontConverter, FontToolsConverter
from pdfdom.geometry import PageGeometry
from pdfdom.image import PathRasterizer
from pdfdom.paths import Line, Rectangle
from pdfdom.resource import EmbedAsBase64Handler, ResourceHandler
from pdfdom.utils import DEFAULT_COLOR, TRANSPARENT_COLOR, format_length

if TYPE_CHECKING:
    from pdfdom.textrun import TextMetrics

log = logging.getLogger(__name__)

DEFAULT_FONT_WEIGHT = "normal"
DEFAULT_FONT_STYLE = "normal"
DEFAULT_TITLE = "PDF Document"

DEFAULT_STYLE = (
    ".page{position:relative; border:1px solid blue;margin:0.5em}\n"
    ".p,.r{position:absolute;}\n"
    # the text-shadow stroke fallback is not needed where text-stroke works
    "@supports(-webkit-text-stroke: 1px black) {"
    ".p{text-shadow:none !important;}"
    "}"
)


class DOMParams:
    """Parameters for building the box tree

    :param max_gap: Two glyphs whose horizontal gap is larger than this are
        placed in separate boxes.
    :param min_gap: Two glyphs whose horizontal gap is smaller than this
        (a backward jump beyond kerning) are placed in separate boxes.
    :param max_vertical_delta: Two glyphs whose baselines differ by more than
        this are placed in separate boxes.
    :param unit: The CSS unit of all lengths in the output.
    :param disable_graphics: If path operators should be ignored.
    :param disable_images: If images should be ignored.
    :param disable_image_data: If images should be emitted with an empty
        source reference.
    :param start_page: Zero-based index of the first page to convert.
    :param end_page: Zero-based index of the last page to convert, or None
        for the last page of the document.
    :param font_handler: The resource handler for embedded fonts. Font
        discovery is skipped entirely with an IgnoreResourceHandler.
    :param image_handler: The resource handler for images.
    :param font_converter: Converts embedded font programs.
    :param rasterizer: Draws paths that cannot be expressed with boxes.
    """

    def __init__(
        self,
        max_gap: float = 1.0,
        min_gap: float = -6.0,
        max_vertical_delta: float = 1.0,
        unit: str = "pt",
        disable_graphics: bool = False,
        disable_images: bool = False,
        disable_image_data: bool = False,
        start_page: int = 0,
        end_page: int | None = None,
        font_handler: ResourceHandler | None = None,
        image_handler: ResourceHandler | None = None,
        font_converter: FontConverter | None = None,
        rasterizer: PathRasterizer | None = None,
    ) -> None:
        self.max_gap = max_gap
        self.min_gap = min_gap
        self.max_vertical_delta = max_vertical_delta
        self.unit = unit
        self.disable_graphics = disable_graphics
        self.disable_images = disable_images
        self.disable_image_data = disable_image_data
        self.start_page = start_page
        self.end_page = end_page
        self.font_handler = (
            font_handler if font_handler is not None else EmbedAsBase64Handler()
        )
        self.image_handler = (
            image_handler if image_handler is not None else EmbedAsBase64Handler()
        )
        self.font_converter = (
            font_converter if font_converter is not None else FontToolsConverter()
        )
        self.rasterizer = rasterizer if rasterizer is not None else PathRasterizer()

    def __repr__(self) -> str:
        return (
            f"<DOMParams: max_gap={self.max_gap:.1f}, min_gap={self.min_gap:.1f}, "
            f"max_vertical_delta={self.max_vertical_delta:.1f}, unit={self.unit!r}, "
            f"disable_graphics={self.disable_graphics!r}, "
            f"disable_images={self.disable_images!r}, "
            f"disable_image_data={self.disable_image_data!r}, "
            f"pages={self.start_page}..{self.end_page}, "
            f"font_handler={self.font_handler!r}, image_handler={self.image_handler!r}>"
        )

    def includes_page(self, pageno: int) -> bool:
        if pageno < self.start_page:
            return False
        return self.end_page is None or pageno <= self.end_page


class BoxStyle:
    """Visual style of a text box.

    Equality compares the typographic fields only. Position and line height
    are filled in when a run is finished and never cause a split.
    """

    def __init__(self, unit: str = "pt") -> None:
        self.unit = unit
        self.font_family: str | None = None
        self.font_size: float = 0
        self.font_weight: str | None = None
        self.font_style: str | None = None
        self.line_height: float = 0
        self.word_spacing: float = 0
        self.letter_spacing: float = 0
        self.color: str | None = None
        self.stroke_color: str | None = None
        self.left: float = 0
        self.top: float = 0

    def __repr__(self) -> str:
        return f"<BoxStyle {self.css()}>"

    def _key(self) -> tuple[object, ...]:
        return (
            self.color,
            self.stroke_color,
            self.font_family,
            self.font_size,
            self.font_style,
            self.font_weight,
            self.letter_spacing,
            self.word_spacing,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoxStyle):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def copy(self) -> "BoxStyle":
        obj = self.__class__(self.unit)
        obj.__dict__.update(self.__dict__)
        return obj

    def format_length(self, length: float) -> str:
        return format_length(length, self.unit)

    def css(self) -> str:
        """Inline CSS declarations in a fixed order."""
        decls = [
            f"top:{self.format_length(self.top)};",
            f"left:{self.format_length(self.left)};",
            f"line-height:{self.format_length(self.line_height)};",
        ]
        if self.font_family is not None:
            decls.append(f"font-family:{self.font_family};")
        if self.font_size != 0:
            decls.append(f"font-size:{self.format_length(self.font_size)};")
        if self.font_weight is not None and self.font_weight != DEFAULT_FONT_WEIGHT:
            decls.append(f"font-weight:{self.font_weight};")
        if self.font_style is not None and self.font_style != DEFAULT_FONT_STYLE:
            decls.append(f"font-style:{self.font_style};")
        if self.word_spacing != 0:
            decls.append(f"word-spacing:{self.format_length(self.word_spacing)};")
        if self.letter_spacing != 0:
            decls.append(f"letter-spacing:{self.format_length(self.letter_spacing)};")
        if self.color is not None and self.color != DEFAULT_COLOR:
            decls.append(f"color:{self.color};")
        if self.stroke_color is not None and self.stroke_color != TRANSPARENT_COLOR:
            decls.append(text_stroke_css(self.stroke_color))
        return "".join(decls)


def text_stroke_css(color: str) -> str:
    # text-shadow is the fallback where -webkit-text-stroke is unsupported
    return (
        f"-webkit-text-stroke: {color} 1px ;"
        f"text-shadow:-1px -1px 0 {color}, 1px -1px 0 {color},"
        f"-1px 1px 0 {color}, 1px 1px 0 {color};"
    )


class BoxNode:
    """A positioned box of a page."""

    id_prefix = "b"

    def __init__(self, order_id: int, unit: str = "pt") -> None:
        self.order_id = order_id
        self.unit = unit

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.id}) {self.css}>"

    @property
    def id(self) -> str:
        return f"{self.id_prefix}{self.order_id}"

    @property
    def css(self) -> str:
        raise NotImplementedError

    def format_length(self, length: float) -> str:
        return format_length(length, self.unit)


class TextBox(BoxNode):
    """A finished text run."""

    id_prefix = "p"

    def __init__(
        self,
        order_id: int,
        text: str,
        style: BoxStyle,
        metrics: "TextMetrics",
        unit: str = "pt",
    ) -> None:
        BoxNode.__init__(self, order_id, unit)
        self.text = text
        self.style = style
        self.metrics = metrics

    def __repr__(self) -> str:
        return f"<TextBox({self.id}) {self.text!r}>"

    @property
    def width(self) -> float:
        return self.metrics.width

    @property
    def css(self) -> str:
        return self.style.css() + f"width:{self.format_length(self.width)};"

    def get_text(self) -> str:
        return self.text


class RectBox(BoxNode):
    """A rectangle drawn as a bordered and/or filled box."""

    id_prefix = "r"

    def __init__(self, order_id: int, rect: Rectangle, unit: str = "pt") -> None:
        BoxNode.__init__(self, order_id, unit)
        self.rect = rect

    @property
    def css(self) -> str:
        rect = self.rect
        (left, top, width, height) = rect.get_box()
        decls = [
            f"left:{self.format_length(left)};",
            f"top:{self.format_length(top)};",
            f"width:{self.format_length(width)};",
            f"height:{self.format_length(height)};",
        ]
        if rect.stroke:
            decls.append(
                f"border:{self.format_length(rect.line_width)} solid "
                f"{rect.stroke_color};"
            )
        if rect.fill:
            decls.append(f"background-color:{rect.fill_color};")
        return "".join(decls)


class LineBox(BoxNode):
    """A line drawn as one border of an empty box."""

    id_prefix = "r"

    def __init__(self, order_id: int, line: Line, unit: str = "pt") -> None:
        BoxNode.__init__(self, order_id, unit)
        self.line = line

    @property
    def css(self) -> str:
        line = self.line
        return (
            f"left:{self.format_length(line.left)};"
            f"top:{self.format_length(line.top)};"
            f"width:{self.format_length(line.width)};"
            f"height:{self.format_length(line.height)};"
            f"{line.border_side}:{self.format_length(line.stroke_width)} solid "
            f"{line.color};"
        )


class ImageBox(BoxNode):
    """An image (embedded or a rasterized path) placed on the page."""

    id_prefix = "i"

    def __init__(
        self,
        order_id: int,
        x: float,
        y: float,
        width: float,
        height: float,
        src: str,
        unit: str = "pt",
    ) -> None:
        BoxNode.__init__(self, order_id, unit)
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.src = src

    def __repr__(self) -> str:
        return f"<ImageBox({self.id}) {self.css}>"

    @property
    def css(self) -> str:
        return (
            "position:absolute;"
            f"left:{self.format_length(self.x)};"
            f"top:{self.format_length(self.y)};"
            f"width:{self.format_length(self.width)};"
            f"height:{self.format_length(self.height)};"
        )


class PageBox:
    """Container of the boxes of one page."""

    def __init__(
        self,
        pageid: int,
        geometry: PageGeometry,
        unit: str = "pt",
    ) -> None:
        self.pageid = pageid
        self.geometry = geometry
        self.unit = unit
        self._objs: list[BoxNode] = []

    def __repr__(self) -> str:
        return f"<PageBox({self.pageid}) {self.size!r} {len(self._objs)} boxes>"

    def __iter__(self) -> Iterator[BoxNode]:
        return iter(self._objs)

    def __len__(self) -> int:
        return len(self._objs)

    def add(self, obj: BoxNode) -> None:
        self._objs.append(obj)

    @property
    def id(self) -> str:
        return f"page_{self.pageid}"

    @property
    def size(self) -> tuple[float, float] | None:
        return self.geometry.get_size()

    @property
    def css(self) -> str:
        size = self.size
        if size is None:
            return ""
        (w, h) = size
        return (
            f"width:{format_length(w, self.unit)};"
            f"height:{format_length(h, self.unit)};"
            "overflow:hidden;"
        )


class DOMDocument:
    """The produced tree: document title, global style and pages."""

    def __init__(self) -> None:
        self.title = DEFAULT_TITLE
        self.pages: list[PageBox] = []
        self.font_faces: list[tuple[str, str]] = []

    def __repr__(self) -> str:
        return f"<DOMDocument {self.title!r} {len(self.pages)} pages>"

    def __iter__(self) -> Iterator[PageBox]:
        return iter(self.pages)

    def __len__(self) -> int:
        return len(self.pages)

    @property
    def global_style(self) -> str:
        faces = "".join(
            f'@font-face {{font-family:"{alias}";src:url(\'{src}\');}}\n'
            for (alias, src) in self.font_faces
        )
        return faces + "\n" + DEFAULT_STYLE
