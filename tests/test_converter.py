import io

import pytest

from pdfdom.converter import BoxTreeBuilder, HTMLConverter, PDFBoxTreeDevice
from pdfdom.fontconv import FontConverter
from pdfdom.fonttable import FontDescriptor, FontProgram, FontRef
from pdfdom.geometry import PageGeometry
from pdfdom.image import ImageResource
from pdfdom.layout import DOMParams, ImageBox, LineBox, RectBox, TextBox
from pdfdom.pdfexceptions import PDFDomValueError, ResourceHandlerError
from pdfdom.resource import IgnoreResourceHandler, ResourceHandler
from pdfdom.textrun import GlyphEvent

PAGE = PageGeometry((0, 0, 200, 200))
DESCRIPTOR = FontDescriptor(718, -207, (-166, -225, 1000, 931))
HELVETICA = FontRef("Helvetica", subtype="Type1", descriptor=DESCRIPTOR)
EMBEDDED = FontRef(
    "ABCDEF+Foo",
    subtype="TrueType",
    descriptor=DESCRIPTOR,
    program=FontProgram(FontProgram.TRUETYPE, b"ttf"),
)


class IdentityConverter(FontConverter):
    def convert(self, data, kind, name=""):
        return data


class FailingHandler(ResourceHandler):
    def handle(self, resource):
        raise ResourceHandlerError("disk full")


def make_params(**kwargs):
    kwargs.setdefault("font_converter", IdentityConverter())
    return DOMParams(**kwargs)


def write_text(device, text, x=10.0, y=50.0, font=HELVETICA):
    for c in text:
        device.render_glyph(GlyphEvent(x, y, 5, 10, c, font, 10))
        x += 5


def single_page(device, draw):
    device.begin_page(PAGE)
    draw(device)
    device.end_page()
    (page,) = device.finish_document().pages
    return list(page)


class TestPDFBoxTreeDevice:
    def test_stroked_rectangle(self):
        def draw(device):
            device.set_stroke_color("#ff0000")
            device.set_line_width(2)
            device.rect(10, 20, 100, 50)
            device.paint(stroke=True, fill=False)

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert isinstance(box, RectBox)
        assert box.id == "r1"
        assert box.css == (
            "left:9.0pt;top:129.0pt;width:98.0pt;height:48.0pt;"
            "border:2.0pt solid #ff0000;"
        )

    def test_filled_rectangle(self):
        def draw(device):
            device.set_fill_color("#0000ff")
            device.rect(10, 20, 100, 50)
            device.paint(stroke=False, fill=True)

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert box.css == (
            "left:10.0pt;top:130.0pt;width:100.0pt;height:50.0pt;"
            "background-color:#0000ff;"
        )

    def test_horizontal_line(self):
        def draw(device):
            device.move_to(10, 100)
            device.line_to(110, 100)
            device.paint(stroke=True, fill=False)

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert isinstance(box, LineBox)
        assert box.css == (
            "left:10.0pt;top:100.0pt;width:100.0pt;height:0.0pt;"
            "border-bottom:1.0pt solid #000000;"
        )

    def test_line_width_follows_ctm(self):
        def draw(device):
            device.set_ctm((2, 0, 0, 2, 0, 0))
            device.move_to(10, 50)
            device.line_to(60, 50)
            device.paint(stroke=True, fill=False)

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert "border-bottom:2.0pt solid" in box.css

    def test_end_path_discards(self):
        def draw(device):
            device.rect(0, 0, 10, 10)
            device.end_path()
            device.paint(stroke=True, fill=True)

        assert single_page(PDFBoxTreeDevice(make_params()), draw) == []

    def test_diagonal_path_is_rasterized(self):
        def draw(device):
            device.move_to(0, 0)
            device.line_to(100, 100)
            device.paint(stroke=True, fill=False)

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert isinstance(box, ImageBox)
        assert (box.x, box.y, box.width, box.height) == (0, 100, 100, 100)
        assert box.src.startswith("data:image/png;base64,")

    def test_disable_graphics(self):
        def draw(device):
            device.rect(10, 20, 100, 50)
            device.paint(stroke=True, fill=True)

        params = make_params(disable_graphics=True)
        assert single_page(PDFBoxTreeDevice(params), draw) == []

    def test_text_run(self):
        (box,) = single_page(
            PDFBoxTreeDevice(make_params()), lambda d: write_text(d, "Hi")
        )
        assert isinstance(box, TextBox)
        assert box.id == "p1"
        assert box.text == "Hi"
        assert box.css.startswith("top:42.82pt;left:10.0pt;")
        assert "font-family:Helvetica;font-size:10.0pt;" in box.css
        assert box.css.endswith("width:10.0pt;")

    def test_box_ids_are_unique_and_increasing(self):
        def draw(device):
            write_text(device, "a")
            device.rect(0, 0, 10, 10)
            device.paint(stroke=False, fill=True)
            write_text(device, "b", x=100)

        boxes = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert [box.id for box in boxes] == ["r1", "p2", "p3"]

    def test_image(self):
        def draw(device):
            device.set_ctm((50, 0, 0, 30, 10, 20))
            device.draw_image(ImageResource("img", b"data"))

        (box,) = single_page(PDFBoxTreeDevice(make_params()), draw)
        assert box.id == "i1"
        assert box.css == (
            "position:absolute;left:10.0pt;top:150.0pt;width:50.0pt;height:30.0pt;"
        )
        assert box.src == "data:image/png;base64,ZGF0YQ=="

    def test_disable_image_data(self):
        params = make_params(disable_image_data=True)

        def draw(device):
            device.draw_image(ImageResource("img", b"data"))

        (box,) = single_page(PDFBoxTreeDevice(params), draw)
        assert box.src == ""

    def test_disable_images(self):
        params = make_params(disable_images=True)

        def draw(device):
            device.draw_image(ImageResource("img", b"data"))

        assert single_page(PDFBoxTreeDevice(params), draw) == []

    def test_image_handler_failure_omits_image(self):
        params = make_params(image_handler=FailingHandler())

        def draw(device):
            device.draw_image(ImageResource("img", b"data"))

        assert single_page(PDFBoxTreeDevice(params), draw) == []

    def test_page_range(self):
        device = PDFBoxTreeDevice(make_params(start_page=1, end_page=1))
        for i in range(3):
            device.begin_page(PAGE)
            write_text(device, str(i))
            device.end_page()
        doc = device.finish_document()
        assert len(doc) == 1
        (page,) = doc.pages
        assert page.id == "page_0"
        assert [box.text for box in page] == ["1"]

    def test_page_css(self):
        device = PDFBoxTreeDevice(make_params())
        device.begin_page(PageGeometry((0, 0, 200, 100), 90))
        device.begin_page(PageGeometry(None))
        doc = device.finish_document()
        assert [page.css for page in doc] == [
            "width:100.0pt;height:200.0pt;overflow:hidden;",
            "",
        ]

    @pytest.mark.parametrize(
        ("title", "expected"),
        [(None, "PDF Document"), ("  ", "PDF Document"), ("Report", "Report")],
    )
    def test_title(self, title, expected):
        assert PDFBoxTreeDevice(make_params()).finish_document(title).title == expected


class TestFonts:
    def test_embedded_font_face(self):
        device = PDFBoxTreeDevice(make_params())
        device.begin_page(PAGE)
        device.register_font(EMBEDDED)
        write_text(device, "x", font=EMBEDDED)
        device.end_page()
        doc = device.finish_document()
        assert doc.font_faces == [
            ("ABCDEF Foo", "data:application/x-font-truetype;base64,dHRm")
        ]
        assert doc.global_style.startswith(
            "@font-face {font-family:\"ABCDEF Foo\";"
            "src:url('data:application/x-font-truetype;base64,dHRm');}\n\n"
        )
        (box,) = doc.pages[0]
        assert "font-family:ABCDEF Foo;" in box.css

    def test_ignored_fonts(self):
        params = make_params(font_handler=IgnoreResourceHandler())
        device = PDFBoxTreeDevice(params)
        assert not device.fonts_enabled
        device.begin_page(PAGE)
        device.register_font(EMBEDDED)
        write_text(device, "x", font=EMBEDDED)
        device.end_page()
        doc = device.finish_document()
        assert doc.font_faces == []
        (box,) = doc.pages[0]
        assert "font-family:ABCDEF+Foo;" in box.css

    def test_type1_font_keeps_its_name(self):
        type1 = FontRef(
            "ABCDEF+CMR10",
            subtype="Type1",
            descriptor=DESCRIPTOR,
            program=FontProgram(FontProgram.TYPE1, b"%!PS-AdobeFont-1.0"),
        )
        device = PDFBoxTreeDevice(make_params())
        device.begin_page(PAGE)
        device.register_font(type1)
        write_text(device, "x", font=type1)
        device.end_page()
        doc = device.finish_document()
        entry = device.font_table.get(type1.identity)
        assert entry is not None
        assert not entry.is_valid()
        assert doc.font_faces == []
        (box,) = doc.pages[0]
        assert "font-family:ABCDEF+CMR10;" in box.css

    def test_font_without_program_has_no_face(self):
        device = PDFBoxTreeDevice(make_params())
        device.register_font(HELVETICA)
        assert device.finish_document().font_faces == []


class TestBoxTreeBuilder:
    def test_box_outside_page(self):
        builder = BoxTreeBuilder(make_params())
        with pytest.raises(PDFDomValueError):
            builder.add_image_box(0, 0, 1, 1, None)


class TestHTMLConverter:
    def convert(self, outfp, codec="utf-8", params=None):
        device = HTMLConverter(outfp, codec=codec, params=params or make_params())
        device.begin_page(PAGE)
        write_text(device, "a<b")
        device.rect(10, 20, 100, 50)
        device.paint(stroke=False, fill=True)
        device.end_page()
        device.finish_document("T&C")

    def test_binary_output(self):
        outfp = io.BytesIO()
        self.convert(outfp)
        html = outfp.getvalue().decode("utf-8")
        assert html.startswith('<?xml version="1.0" encoding="utf-8"?>\n')
        assert '<html xmlns="http://www.w3.org/1999/xhtml">' in html
        assert "<title>T&amp;C</title>" in html
        assert (
            '<div id="page_0" class="page" '
            'style="width:200.0pt;height:200.0pt;overflow:hidden;">'
        ) in html
        assert ">a&lt;b</div>" in html
        assert (
            '<div id="r1" class="r" style="left:10.0pt;top:130.0pt;'
            'width:100.0pt;height:50.0pt;background-color:#000000;">&#160;</div>'
        ) in html
        assert ".p,.r{position:absolute;}" in html
        assert html.endswith("</body>\n</html>\n")

    def test_text_output(self):
        outfp = io.StringIO()
        self.convert(outfp, codec="")
        assert outfp.getvalue().startswith('<?xml version="1.0"?>\n')

    def test_text_output_with_codec(self):
        with pytest.raises(PDFDomValueError):
            HTMLConverter(io.StringIO(), codec="utf-8")

    def test_binary_output_without_codec(self):
        with pytest.raises(PDFDomValueError):
            HTMLConverter(io.BytesIO(), codec="")

    def test_output_is_deterministic(self):
        first = io.BytesIO()
        second = io.BytesIO()
        self.convert(first)
        self.convert(second)
        assert first.getvalue() == second.getvalue()

    def test_image_element(self):
        outfp = io.BytesIO()
        device = HTMLConverter(outfp, params=make_params(disable_image_data=True))
        device.begin_page(PAGE)
        device.draw_image(ImageResource("img", b"data"))
        device.end_page()
        device.finish_document()
        assert (
            '<img id="i1" style="position:absolute;left:0.0pt;top:199.0pt;'
            'width:1.0pt;height:1.0pt;" src=""/>'
        ) in outfp.getvalue().decode("utf-8")
