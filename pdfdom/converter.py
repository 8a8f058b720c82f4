import io
import logging
from typing import BinaryIO, TextIO, cast

from pdfdom.fonttable import FontRef, FontTable
from pdfdom.geometry import PageGeometry, transform_length, transform_rect
from pdfdom.image import ImageResource
from pdfdom.layout import (
    DEFAULT_TITLE,
    BoxNode,
    BoxStyle,
    DOMDocument,
    DOMParams,
    ImageBox,
    LineBox,
    PageBox,
    RectBox,
    TextBox,
)
from pdfdom.paths import Line, OpaquePath, PathAccumulator, Rectangle, Shape
from pdfdom.pdfdevice import DOMDevice
from pdfdom.pdfexceptions import (
    ImageConversionError,
    PDFDomValueError,
    ResourceHandlerError,
)
from pdfdom.resource import IgnoreResourceHandler, Resource
from pdfdom.textrun import GlyphEvent, TextMetrics, TextRun, TextRunBuilder, TextState
from pdfdom.utils import DEFAULT_COLOR, AnyIO, Matrix, enc

log = logging.getLogger(__name__)


class BoxTreeBuilder:
    """Assembles pages and their boxes into a DOMDocument.

    Every box gets the next value of one counter, so box ids are unique and
    increasing within one document.
    """

    def __init__(
        self,
        params: DOMParams | None = None,
        font_table: FontTable | None = None,
        title: str | None = None,
    ) -> None:
        self.params = params if params is not None else DOMParams()
        self.font_table = font_table
        self.title = title
        self.document = DOMDocument()
        self.page: PageBox | None = None
        self.pagecnt = 0
        self.boxcnt = 0

    def __repr__(self) -> str:
        return f"<BoxTreeBuilder pages={self.pagecnt} boxes={self.boxcnt}>"

    @property
    def resource_name(self) -> str:
        if self.title and self.title.strip():
            return self.title
        return DEFAULT_TITLE

    def _next_id(self) -> int:
        self.boxcnt += 1
        return self.boxcnt

    def _add(self, box: BoxNode) -> BoxNode:
        if self.page is None:
            raise PDFDomValueError(f"{box!r} added outside of a page")
        self.page.add(box)
        return box

    def start_page(self, geometry: PageGeometry) -> PageBox:
        if geometry.get_size() is None:
            log.warning("No crop box found for page %d", self.pagecnt)
        self.page = PageBox(self.pagecnt, geometry, self.params.unit)
        self.pagecnt += 1
        self.document.pages.append(self.page)
        return self.page

    def add_text_box(self, text: str, style: BoxStyle, metrics: TextMetrics) -> BoxNode:
        box = TextBox(self._next_id(), text, style, metrics, self.params.unit)
        return self._add(box)

    def add_shape_box(self, shape: Shape) -> BoxNode | None:
        if isinstance(shape, Rectangle):
            return self._add(RectBox(self._next_id(), shape, self.params.unit))
        if isinstance(shape, Line):
            return self._add(LineBox(self._next_id(), shape, self.params.unit))
        if isinstance(shape, OpaquePath):
            return self._add_opaque_path(shape)
        raise PDFDomValueError(f"Unknown shape {shape!r}")

    def _add_opaque_path(self, path: OpaquePath) -> BoxNode | None:
        try:
            resource = self.params.rasterizer.rasterize(path, self.resource_name)
        except ImageConversionError as e:
            log.warning("Omitting path that cannot be rasterized: %s", e)
            return None
        (x0, y0, x1, y1) = path.bbox
        return self.add_image_box(x0, y0, x1 - x0, y1 - y0, resource)

    def add_image_box(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        resource: Resource | None,
    ) -> BoxNode | None:
        src = ""
        if resource is not None and not self.params.disable_image_data:
            try:
                src = self.params.image_handler.handle(resource)
            except ResourceHandlerError as e:
                log.warning("Omitting image %r: %s", resource, e)
                return None
        box = ImageBox(self._next_id(), x, y, w, h, src, self.params.unit)
        return self._add(box)

    def finish_page(self) -> None:
        self.page = None

    def finish_document(self, title: str | None = None) -> DOMDocument:
        if title is None:
            title = self.title
        if title is not None and title.strip():
            self.document.title = title
        self.document.font_faces = self.create_font_faces()
        return self.document

    def create_font_faces(self) -> list[tuple[str, str]]:
        faces: list[tuple[str, str]] = []
        if self.font_table is None:
            return faces
        for entry in self.font_table.valid_entries():
            (data, mime_type, ext) = entry.materialize()
            try:
                src = self.params.font_handler.handle(
                    Resource(entry.name, data, mime_type, ext)
                )
            except ResourceHandlerError as e:
                log.warning("Cannot write font face for %r: %s", entry.name, e)
                continue
            if src:
                faces.append((entry.alias, src))
        return faces


class PDFBoxTreeDevice(DOMDevice):
    """Builds the box tree from the decoded drawing events.

    :param params: construction parameters; see DOMParams.
    :param title: the document title, also used to name image resources.
    """

    def __init__(
        self,
        params: DOMParams | None = None,
        title: str | None = None,
    ) -> None:
        DOMDevice.__init__(self)
        self.params = params if params is not None else DOMParams()
        self.font_table = FontTable(self.params.font_converter)
        self.builder = BoxTreeBuilder(self.params, self.font_table, title)
        self.runs = TextRunBuilder(self.font_table, self.params)
        self.path = PathAccumulator()
        self.text_state = TextState()
        self.line_width: float = 1
        self.fill_color = DEFAULT_COLOR
        self.stroke_color = DEFAULT_COLOR
        self.pageno = 0
        self.geometry: PageGeometry | None = None

    def __repr__(self) -> str:
        return f"<PDFBoxTreeDevice pageno={self.pageno} {self.builder!r}>"

    @property
    def fonts_enabled(self) -> bool:
        return not isinstance(self.params.font_handler, IgnoreResourceHandler)

    @property
    def images_enabled(self) -> bool:
        return not self.params.disable_images

    @property
    def image_data_enabled(self) -> bool:
        return not self.params.disable_image_data

    @property
    def page_active(self) -> bool:
        return self.geometry is not None

    @property
    def graphics_active(self) -> bool:
        return self.geometry is not None and not self.params.disable_graphics

    def begin_page(self, geometry: PageGeometry) -> None:
        pageno = self.pageno
        self.pageno += 1
        self.path.reset()
        self.line_width = 1
        self.fill_color = self.stroke_color = DEFAULT_COLOR
        self.text_state = TextState()
        if not self.params.includes_page(pageno):
            self.geometry = None
            return
        self.geometry = geometry
        self.path.page = geometry
        self.builder.start_page(geometry)

    def end_page(self) -> None:
        if self.geometry is None:
            return
        self._add_run(self.runs.finish())
        self.builder.finish_page()
        self.path.reset()
        self.geometry = None

    def register_font(self, font: FontRef) -> None:
        if self.fonts_enabled:
            self.font_table.register(font)

    def set_ctm(self, ctm: Matrix) -> None:
        DOMDevice.set_ctm(self, ctm)
        self.path.ctm = ctm

    def move_to(self, x: float, y: float) -> None:
        if self.graphics_active:
            self.path.move_to(x, y)

    def line_to(self, x: float, y: float) -> None:
        if self.graphics_active:
            self.path.line_to(x, y)

    def close_subpath(self) -> None:
        if self.graphics_active:
            self.path.close_subpath()

    def rect(self, x: float, y: float, w: float, h: float) -> None:
        if self.graphics_active:
            self.path.rect(x, y, w, h)

    def paint(self, stroke: bool, fill: bool, close: bool = False) -> None:
        if not self.graphics_active:
            self.path.reset()
            return
        shapes = self.path.paint(
            stroke,
            fill,
            close=close,
            line_width=transform_length(self.line_width, self.ctm),
            stroke_color=self.stroke_color,
            fill_color=self.fill_color,
        )
        for shape in shapes:
            self.builder.add_shape_box(shape)

    def end_path(self) -> None:
        self.path.reset()

    def draw_image(
        self,
        resource: ImageResource | None,
        x: float = 0,
        y: float = 0,
        w: float = 1,
        h: float = 1,
    ) -> None:
        if self.geometry is None or self.params.disable_images:
            return
        (x0, y0, x1, y1) = transform_rect((x, y, x + w, y + h), self.ctm, self.geometry)
        self.builder.add_image_box(x0, y0, x1 - x0, y1 - y0, resource)

    def render_glyph(self, glyph: GlyphEvent) -> None:
        if self.geometry is None:
            return
        self._add_run(self.runs.add_glyph(glyph, self.text_state))

    def _add_run(self, run: TextRun | None) -> None:
        if run is not None:
            self.builder.add_text_box(run.text, run.style, run.metrics)

    def set_fill_color(self, color: str) -> None:
        self.fill_color = color
        self.text_state.fill_color = color

    def set_stroke_color(self, color: str) -> None:
        self.stroke_color = color
        self.text_state.stroke_color = color

    def set_line_width(self, width: float) -> None:
        self.line_width = width

    def set_word_spacing(self, spacing: float) -> None:
        self.text_state.word_spacing = transform_length(spacing, self.ctm)

    def set_letter_spacing(self, spacing: float) -> None:
        self.text_state.letter_spacing = transform_length(spacing, self.ctm)

    def set_text_rendering_mode(self, mode: int) -> None:
        self.text_state.render_mode = mode

    def finish_document(self, title: str | None = None) -> DOMDocument:
        if self.geometry is not None:
            self.end_page()
        return self.builder.finish_document(title)


class HTMLConverter(PDFBoxTreeDevice):
    """Writes the box tree as an XHTML document.

    The document is written by finish_document(). `outfp` is a binary stream
    when a codec is given and a text stream otherwise.
    """

    def __init__(
        self,
        outfp: AnyIO,
        codec: str = "utf-8",
        params: DOMParams | None = None,
        title: str | None = None,
    ) -> None:
        PDFBoxTreeDevice.__init__(self, params, title)
        self.outfp = outfp
        self.codec = codec
        self.outfp_binary = self._is_binary_stream(self.outfp)

        # write() assumes a codec for binary I/O, or no codec for text I/O.
        if self.outfp_binary and not self.codec:
            raise PDFDomValueError("Codec is required for a binary I/O output")
        if not self.outfp_binary and self.codec:
            raise PDFDomValueError("Codec must not be specified for a text I/O output")

    @staticmethod
    def _is_binary_stream(outfp: AnyIO) -> bool:
        """Test if an stream is binary or not"""
        if "b" in getattr(outfp, "mode", ""):
            return True
        elif hasattr(outfp, "mode"):
            # output stream has a mode, but it does not contain 'b'
            return False
        elif isinstance(outfp, io.BytesIO):
            return True
        elif isinstance(outfp, (io.StringIO, io.TextIOBase)):
            return False

        return True

    def write(self, text: str) -> None:
        if self.codec:
            cast(BinaryIO, self.outfp).write(text.encode(self.codec))
        else:
            cast(TextIO, self.outfp).write(text)

    def finish_document(self, title: str | None = None) -> DOMDocument:
        doc = PDFBoxTreeDevice.finish_document(self, title)
        self.write_document(doc)
        return doc

    def write_document(self, doc: DOMDocument) -> None:
        self.write_header(doc)
        for page in doc:
            self.write_page(page)
        self.write_footer()

    def write_header(self, doc: DOMDocument) -> None:
        if self.codec:
            self.write(f'<?xml version="1.0" encoding="{self.codec}"?>\n')
            charset = f";charset={self.codec}"
        else:
            self.write('<?xml version="1.0"?>\n')
            charset = ""
        self.write('<html xmlns="http://www.w3.org/1999/xhtml">\n')
        self.write("<head>\n")
        self.write(
            f'<meta http-equiv="content-type" content="text/html{charset}"/>\n'
        )
        self.write(f"<title>{enc(doc.title)}</title>\n")
        self.write(
            f'<style type="text/css">{enc(doc.global_style, quote=False)}</style>\n'
        )
        self.write("</head>\n<body>\n")

    def write_footer(self) -> None:
        self.write("</body>\n</html>\n")

    def write_page(self, page: PageBox) -> None:
        self.write(
            f'<div id="{page.id}" class="page" style="{enc(page.css)}">\n'
        )
        for box in page:
            self.write_box(box)
        self.write("</div>\n")

    def write_box(self, box: BoxNode) -> None:
        if isinstance(box, TextBox):
            self.write(
                f'<div id="{box.id}" class="p" style="{enc(box.css)}">'
                f"{enc(box.text, quote=False)}</div>\n"
            )
        elif isinstance(box, ImageBox):
            self.write(
                f'<img id="{box.id}" style="{enc(box.css)}" src="{enc(box.src)}"/>\n'
            )
        else:
            self.write(
                f'<div id="{box.id}" class="r" style="{enc(box.css)}">&#160;</div>\n'
            )
