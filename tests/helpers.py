"""Builds small PDF files in memory for the tests."""

from collections.abc import Sequence

from pdfdom.pdfdevice import DOMDevice

HELVETICA = (
    b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica "
    b"/Encoding /WinAnsiEncoding >>"
)


class PDFBuilder:
    """Collects numbered objects and writes them with a valid xref table."""

    def __init__(self) -> None:
        self.objects: list[bytes] = []

    def add(self, body: bytes) -> int:
        self.objects.append(body)
        return len(self.objects)

    def add_stream(self, data: bytes, extra: bytes = b"") -> int:
        return self.add(
            b"<< /Length %d %s>>\nstream\n%s\nendstream" % (len(data), extra, data)
        )

    def reserve(self) -> int:
        return self.add(b"null")

    def set(self, objid: int, body: bytes) -> None:
        self.objects[objid - 1] = body

    def build(self, root: int, info: int | None = None) -> bytes:
        out = b"%PDF-1.4\n"
        offsets = []
        for i, body in enumerate(self.objects, start=1):
            offsets.append(len(out))
            out += b"%d 0 obj\n%s\nendobj\n" % (i, body)
        xref = len(out)
        out += b"xref\n0 %d\n" % (len(self.objects) + 1)
        out += b"0000000000 65535 f \n"
        for offset in offsets:
            out += b"%010d 00000 n \n" % offset
        trailer = b"/Size %d /Root %d 0 R" % (len(self.objects) + 1, root)
        if info is not None:
            trailer += b" /Info %d 0 R" % info
        out += b"trailer\n<< %s >>\nstartxref\n%d\n%%%%EOF\n" % (trailer, xref)
        return out


def make_pdf(
    contents: Sequence[bytes],
    mediabox: tuple[float, float, float, float] = (0, 0, 200, 200),
    rotate: int = 0,
    title: bytes | None = None,
) -> bytes:
    """A document with one page per content stream, using Helvetica as /F1."""
    builder = PDFBuilder()
    catalog = builder.reserve()
    pages = builder.reserve()
    font = builder.add(HELVETICA)
    box = b"[%s]" % b" ".join(b"%g" % v for v in mediabox)
    kids = []
    for content in contents:
        stream = builder.add_stream(content)
        kids.append(
            builder.add(
                b"<< /Type /Page /Parent %d 0 R /MediaBox %s /Rotate %d "
                b"/Resources << /Font << /F1 %d 0 R >> >> /Contents %d 0 R >>"
                % (pages, box, rotate, font, stream)
            )
        )
    builder.set(catalog, b"<< /Type /Catalog /Pages %d 0 R >>" % pages)
    builder.set(
        pages,
        b"<< /Type /Pages /Kids [%s] /Count %d >>"
        % (b" ".join(b"%d 0 R" % k for k in kids), len(kids)),
    )
    info = None
    if title is not None:
        info = builder.add(b"<< /Title (%s) >>" % title)
    return builder.build(catalog, info)


class RecordingDevice(DOMDevice):
    """Records the events it receives as tuples."""

    def __init__(self):
        DOMDevice.__init__(self)
        self.events = []
        self.fonts = []
        self.glyphs = []

    def begin_page(self, geometry):
        self.events.append(("begin_page", geometry.get_size()))

    def end_page(self):
        self.events.append(("end_page",))

    def register_font(self, font):
        self.fonts.append(font)

    def render_glyph(self, glyph):
        self.glyphs.append(glyph)

    def draw_image(self, resource, x=0, y=0, w=1, h=1):
        self.events.append(("draw_image", resource))

    def move_to(self, x, y):
        self.events.append(("move_to", x, y))

    def line_to(self, x, y):
        self.events.append(("line_to", x, y))

    def close_subpath(self):
        self.events.append(("close_subpath",))

    def rect(self, x, y, w, h):
        self.events.append(("rect", x, y, w, h))

    def paint(self, stroke, fill, close=False):
        self.events.append(("paint", stroke, fill, close))

    def end_path(self):
        self.events.append(("end_path",))

    def set_fill_color(self, color):
        self.events.append(("set_fill_color", color))

    def set_stroke_color(self, color):
        self.events.append(("set_stroke_color", color))

    def set_line_width(self, width):
        self.events.append(("set_line_width", width))

    def set_word_spacing(self, spacing):
        self.events.append(("set_word_spacing", spacing))

    def set_letter_spacing(self, spacing):
        self.events.append(("set_letter_spacing", spacing))

    def set_text_rendering_mode(self, mode):
        self.events.append(("set_text_rendering_mode", mode))
