"""Decoding of PDF pages into DOMDevice events with pdfminer.six.

pdfminer interprets the content streams. PDFEventSource receives its device
callbacks and forwards them to a DOMDevice: path construction and painting,
text state, colours, images and glyphs. Glyphs are placed in output
coordinates here, everything else stays in user space together with the
current transformation matrix.
"""

import logging
import math
from collections.abc import Iterator, Sequence
from typing import Any, BinaryIO, cast

from pdfminer.pdfcolor import PDFColorSpace
from pdfminer.pdfdevice import PDFTextDevice
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdffont import (
    PDFCIDFont,
    PDFFont,
    PDFTrueTypeFont,
    PDFType1Font,
    PDFType3Font,
    PDFUnicodeNotDefined,
)
from pdfminer.pdfinterp import (
    PDFGraphicState,
    PDFPageInterpreter,
    PDFResourceManager,
    PDFTextState,
)
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pdfminer.pdftypes import PDFObjRef, PDFStream, dict_value, resolve1
from pdfminer.psparser import PSLiteral, literal_name
from pdfminer.utils import decode_text

from pdfdom import settings
from pdfdom.casting import safe_float, safe_rect_list
from pdfdom.fonttable import FontDescriptor, FontProgram, FontRef
from pdfdom.geometry import PageGeometry
from pdfdom.image import encode_image_stream
from pdfdom.layout import DEFAULT_TITLE
from pdfdom.pdfdevice import DOMDevice
from pdfdom.pdfexceptions import ImageConversionError, PDFDomValueError
from pdfdom.textrun import GlyphEvent
from pdfdom.utils import (
    DEFAULT_COLOR,
    MATRIX_IDENTITY,
    Matrix,
    Point,
    apply_matrix_norm,
    apply_matrix_pt,
    cmyk_color_string,
    color_string,
    gray_color_string,
    make_compat_str,
    mult_matrix,
)

log = logging.getLogger(__name__)

# number of straight segments a bezier curve is flattened into
CURVE_SEGMENTS = 8


def css_color(value: object) -> str:
    """Converts a pdfminer colour value (gray, RGB or CMYK) to CSS."""
    if isinstance(value, (int, float)):
        return gray_color_string(value)
    if isinstance(value, (list, tuple)):
        components = [safe_float(v) for v in value]
        if all(c is not None for c in components):
            floats = cast(list[float], components)
            if len(floats) == 1:
                return gray_color_string(floats[0])
            if len(floats) == 3:
                return color_string(*floats)
            if len(floats) == 4:
                return cmyk_color_string(*floats)
    # patterns and unknown colour spaces
    return DEFAULT_COLOR


def _bezier(p0: Point, p1: Point, p2: Point, p3: Point) -> Iterator[Point]:
    """Points of a cubic bezier curve, excluding the start point."""
    for i in range(1, CURVE_SEGMENTS + 1):
        t = i / CURVE_SEGMENTS
        u = 1 - t
        a = u * u * u
        b = 3 * u * u * t
        c = 3 * u * t * t
        d = t * t * t
        yield (
            a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
            a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
        )


def _font_program(descriptor: dict[str, Any], subtype: str) -> FontProgram | None:
    data = resolve1(descriptor.get("FontFile2"))
    if isinstance(data, PDFStream):
        kind = FontProgram.TYPE0_TRUETYPE if subtype == "Type0" else FontProgram.TRUETYPE
        return FontProgram(kind, data.get_data())
    data = resolve1(descriptor.get("FontFile"))
    if isinstance(data, PDFStream):
        return FontProgram(FontProgram.TYPE1, data.get_data())
    data = resolve1(descriptor.get("FontFile3"))
    if isinstance(data, PDFStream):
        return FontProgram(FontProgram.OTHER, data.get_data())
    return None


def _font_subtype(font: PDFFont) -> str:
    # PDFTrueTypeFont derives from PDFType1Font
    if isinstance(font, PDFCIDFont):
        return "Type0"
    if isinstance(font, PDFTrueTypeFont):
        return "TrueType"
    if isinstance(font, PDFType3Font):
        return "Type3"
    if isinstance(font, PDFType1Font):
        return "Type1"
    return ""


def font_ref(font: PDFFont) -> FontRef:
    """Describes a pdfminer font for the font table and text runs."""
    name = getattr(font, "basefont", None) or font.fontname
    if isinstance(name, PSLiteral):
        name = literal_name(name)
    name = make_compat_str(name)
    if name == "unknown":
        name = ""
    subtype = _font_subtype(font)
    descriptor = dict_value(font.descriptor) if font.descriptor else {}
    bbox = safe_rect_list(font.bbox) or (0, 0, 0, 0)
    return FontRef(
        name,
        subtype=subtype,
        descriptor=FontDescriptor(font.ascent, font.descent, bbox),
        program=_font_program(descriptor, subtype),
    )


class DOMPageInterpreter(PDFPageInterpreter):
    """Interprets pages in plain PDF user space.

    The page-to-output mapping is applied by the device, so content is
    rendered with an identity initial matrix.
    """

    def init_state(self, ctm: Matrix) -> None:
        PDFPageInterpreter.init_state(self, ctm)
        # the PDF default line width is one unit
        self.graphicstate.linewidth = 1

    def process_page(self, page: PDFPage) -> None:
        log.debug("Processing page: %r", page)
        self.device.begin_page(page, MATRIX_IDENTITY)
        self.render_contents(page.resources, page.contents, ctm=MATRIX_IDENTITY)
        self.device.end_page(page)


class PDFEventSource(PDFTextDevice):
    """Forwards pdfminer device callbacks to a DOMDevice.

    :param rsrcmgr: the resource manager shared with the interpreter.
    :param target: the receiver of the events.
    :param image_name: the base name of image resources.
    """

    def __init__(
        self,
        rsrcmgr: PDFResourceManager,
        target: DOMDevice,
        image_name: str = DEFAULT_TITLE,
    ) -> None:
        PDFTextDevice.__init__(self, rsrcmgr)
        self.target = target
        self.image_name = image_name
        self.geometry: PageGeometry | None = None
        self._ctm_stack: list[Matrix] = []
        self._fonts: dict[int, tuple[PDFFont, FontRef]] = {}
        self._line_width: float | None = None
        self._fill_color: str | None = None
        self._stroke_color: str | None = None

    def __repr__(self) -> str:
        return f"<PDFEventSource target={self.target!r}>"

    def close(self) -> None:
        self.target.close()

    def set_ctm(self, ctm: Matrix) -> None:
        PDFTextDevice.set_ctm(self, ctm)
        self.target.set_ctm(ctm)

    def begin_page(self, page: PDFPage, ctm: Matrix) -> None:
        self.geometry = PageGeometry(
            safe_rect_list(page.cropbox),
            page.rotate if isinstance(page.rotate, int) else 0,
        )
        self._line_width = None
        self._fill_color = self._stroke_color = None
        self.target.begin_page(self.geometry)
        if self.target.fonts_enabled:
            self.discover_fonts(page.resources)

    def end_page(self, page: PDFPage) -> None:
        self.target.end_page()
        self.geometry = None

    def begin_figure(self, name: str, bbox: Sequence[float], matrix: Matrix) -> None:
        self._ctm_stack.append(self.ctm)

    def end_figure(self, name: str) -> None:
        # the interpreter of a form XObject leaves its own matrix behind
        if self._ctm_stack:
            self.set_ctm(self._ctm_stack.pop())

    def discover_fonts(self, resources: object) -> None:
        """Registers the fonts of a resource dictionary and its forms.

        Every dictionary is visited once, so cyclic form references end.
        """
        visited: set[int] = set()
        pending = [resources]
        while pending:
            res = resolve1(pending.pop())
            if not isinstance(res, dict) or id(res) in visited:
                continue
            visited.add(id(res))
            fonts = resolve1(res.get("Font"))
            if isinstance(fonts, dict):
                for fontid, spec in fonts.items():
                    self._discover_font(fontid, spec)
            xobjects = resolve1(res.get("XObject"))
            if isinstance(xobjects, dict):
                for xobj in xobjects.values():
                    xobj = resolve1(xobj)
                    if isinstance(xobj, PDFStream) and "Resources" in xobj:
                        pending.append(xobj["Resources"])

    def _discover_font(self, fontid: object, spec: object) -> None:
        objid = spec.objid if isinstance(spec, PDFObjRef) else None
        spec = resolve1(spec)
        if not isinstance(spec, dict):
            log.debug("Invalid font spec %r: %r", fontid, spec)
            return
        try:
            font = self.rsrcmgr.get_font(objid, spec)
        except Exception as e:
            if settings.STRICT:
                raise
            log.warning("Cannot load font %r: %s", fontid, e)
            return
        self.get_font_ref(font)

    def get_font_ref(self, font: PDFFont) -> FontRef:
        """Returns the FontRef of a font, registering it on first use."""
        cached = self._fonts.get(id(font))
        if cached is not None:
            return cached[1]
        ref = font_ref(font)
        self._fonts[id(font)] = (font, ref)
        self.target.register_font(ref)
        return ref

    def _sync_graphics(self, gstate: PDFGraphicState) -> None:
        if gstate.linewidth != self._line_width:
            self._line_width = gstate.linewidth
            self.target.set_line_width(gstate.linewidth)
        fill_color = css_color(gstate.ncolor)
        if fill_color != self._fill_color:
            self._fill_color = fill_color
            self.target.set_fill_color(fill_color)
        stroke_color = css_color(gstate.scolor)
        if stroke_color != self._stroke_color:
            self._stroke_color = stroke_color
            self.target.set_stroke_color(stroke_color)

    def paint_path(
        self,
        gstate: PDFGraphicState,
        stroke: bool,
        fill: bool,
        evenodd: bool,
        path: Sequence[tuple[Any, ...]],
    ) -> None:
        self._sync_graphics(gstate)
        target = self.target
        start: Point | None = None
        current: Point | None = None
        for segment in path:
            op = segment[0]
            try:
                if op == "m":
                    current = start = (float(segment[1]), float(segment[2]))
                    target.move_to(*current)
                elif op == "l":
                    current = (float(segment[1]), float(segment[2]))
                    target.line_to(*current)
                elif op == "h":
                    target.close_subpath()
                    current = start
                elif op in ("c", "v", "y"):
                    current = self._curve_to(op, segment[1:], current)
                else:
                    log.debug("Unknown path operator %r", op)
            except (TypeError, ValueError, IndexError) as e:
                if settings.STRICT:
                    raise PDFDomValueError(f"Invalid path segment {segment!r}") from e
                log.debug("Skipping invalid path segment %r", segment)
        target.paint(stroke, fill)

    def _curve_to(
        self, op: str, args: Sequence[Any], current: Point | None
    ) -> Point:
        values = [float(v) for v in args]
        if op == "c":
            (x1, y1, x2, y2, x3, y3) = values
        elif op == "v":
            (x2, y2, x3, y3) = values
            (x1, y1) = current if current is not None else (x2, y2)
        else:
            (x1, y1, x3, y3) = values
            (x2, y2) = (x3, y3)
        if current is None:
            current = (x1, y1)
            self.target.move_to(*current)
        for (x, y) in _bezier(current, (x1, y1), (x2, y2), (x3, y3)):
            self.target.line_to(x, y)
        return (x3, y3)

    def render_image(self, name: str, stream: PDFStream) -> None:
        if not self.target.images_enabled:
            return
        resource = None
        if self.target.image_data_enabled:
            try:
                resource = encode_image_stream(stream, self.image_name)
            except ImageConversionError as e:
                log.warning("Omitting image %r: %s", name, e)
                return
        self.target.draw_image(resource)

    def render_string(
        self,
        textstate: PDFTextState,
        seq: Sequence[Any],
        ncs: PDFColorSpace,
        graphicstate: PDFGraphicState,
    ) -> None:
        self._sync_graphics(graphicstate)
        self.target.set_text_rendering_mode(textstate.render)
        scaling = textstate.scaling * 0.01
        self.target.set_word_spacing(textstate.wordspace * scaling)
        self.target.set_letter_spacing(textstate.charspace * scaling)
        PDFTextDevice.render_string(self, textstate, seq, ncs, graphicstate)

    def render_char(
        self,
        matrix: Matrix,
        font: PDFFont,
        fontsize: float,
        scaling: float,
        rise: float,
        cid: int,
        ncs: PDFColorSpace,
        graphicstate: PDFGraphicState,
    ) -> float:
        adv = font.char_width(cid) * fontsize * scaling
        if self.geometry is None:
            return adv
        try:
            text = font.to_unichr(cid)
        except PDFUnicodeNotDefined:
            log.debug("undefined: %r, %r", font, cid)
            return adv

        m = mult_matrix(matrix, self.geometry.matrix)
        (x0, y) = apply_matrix_pt(m, (0, rise))
        (x1, _) = apply_matrix_pt(m, (adv, rise))
        size = math.hypot(*apply_matrix_norm(m, (0, fontsize)))
        glyph = GlyphEvent(
            min(x0, x1),
            y,
            abs(x1 - x0),
            size,
            text,
            self.get_font_ref(font),
            size,
        )
        self.target.render_glyph(glyph)
        return adv


def get_document_title(doc: PDFDocument) -> str | None:
    """The /Title of the document information dictionary, if any."""
    for info in doc.info:
        title = resolve1(info.get("Title"))
        if isinstance(title, bytes):
            return decode_text(title)
        if isinstance(title, str):
            return title
    return None


def process_pdf(
    fp: BinaryIO,
    device: DOMDevice,
    password: str = "",
    maxpages: int = 0,
    caching: bool = True,
    end_page: int | None = None,
    image_name: str | None = None,
) -> str | None:
    """Feeds the pages of a PDF file to a device.

    :param end_page: zero-based index of the last page to process.
    :param image_name: base name of image resources; the document title
        when None.
    :return: the document title, if the document has one.
    """
    parser = PDFParser(fp)
    doc = PDFDocument(parser, password=password, caching=caching)
    title = get_document_title(doc)
    if image_name is None:
        image_name = title if title and title.strip() else DEFAULT_TITLE

    rsrcmgr = PDFResourceManager(caching=caching)
    source = PDFEventSource(rsrcmgr, device, image_name)
    interpreter = DOMPageInterpreter(rsrcmgr, source)
    for (pageno, page) in enumerate(PDFPage.create_pages(doc)):
        if maxpages and maxpages <= pageno:
            break
        if end_page is not None and end_page < pageno:
            break
        interpreter.process_page(page)
    return title
