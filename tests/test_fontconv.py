from io import BytesIO

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.t2CharStringPen import T2CharStringPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont

from pdfdom.fontconv import FontToolsConverter
from pdfdom.fonttable import FontProgram
from pdfdom.pdfexceptions import FontConversionError


def _draw_square(pen):
    pen.moveTo((0, 0))
    pen.lineTo((0, 500))
    pen.lineTo((500, 500))
    pen.lineTo((500, 0))
    pen.closePath()


def _finish(fb, family):
    fb.setupHorizontalMetrics({".notdef": (500, 0), "A": (500, 0)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    buf = BytesIO()
    fb.save(buf)
    return buf.getvalue()


def make_truetype():
    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", "A"])
    fb.setupCharacterMap({65: "A"})
    pen = TTGlyphPen(None)
    _draw_square(pen)
    square = pen.glyph()
    fb.setupGlyf({".notdef": TTGlyphPen(None).glyph(), "A": square})
    return _finish(fb, "TestTT")


def make_opentype():
    fb = FontBuilder(1000, isTTF=False)
    fb.setupGlyphOrder([".notdef", "A"])
    fb.setupCharacterMap({65: "A"})
    pen = T2CharStringPen(500, None)
    _draw_square(pen)
    charstrings = {
        ".notdef": T2CharStringPen(500, None).getCharString(),
        "A": pen.getCharString(),
    }
    fb.setupCFF("TestCFF", {"FullName": "TestCFF"}, charstrings, {})
    return _finish(fb, "TestCFF")


def load(data):
    return TTFont(BytesIO(data))


class TestFontToolsConverter:
    def test_truetype_is_kept(self):
        data = FontToolsConverter().convert(
            make_truetype(), FontProgram.TRUETYPE, "Alias"
        )
        font = load(data)
        assert "glyf" in font
        assert font.getBestCmap()[65] == "A"

    def test_missing_name_table_is_added(self):
        original = load(make_truetype())
        del original["name"]
        buf = BytesIO()
        original.save(buf)
        data = FontToolsConverter().convert(
            buf.getvalue(), FontProgram.TYPE0_TRUETYPE, "Alias"
        )
        assert load(data)["name"].getDebugName(1) == "Alias"

    def test_opentype_to_woff(self):
        data = FontToolsConverter().convert(make_opentype(), FontProgram.OTHER)
        font = load(data)
        assert font.flavor == "woff"
        assert "CFF " in font

    def test_bare_cff_to_woff(self):
        cff = load(make_opentype()).reader["CFF "]
        data = FontToolsConverter().convert(cff, FontProgram.OTHER, "Alias")
        font = load(data)
        assert font.flavor == "woff"
        assert font.getGlyphOrder() == [".notdef", "A"]
        assert font["hmtx"]["A"] == (500, 0)
        assert font.getBestCmap()[65] == "A"
        assert font["name"].getDebugName(1) == "Alias"

    @pytest.mark.parametrize(
        "kind", [FontProgram.TRUETYPE, FontProgram.OTHER]
    )
    def test_garbage_raises(self, kind):
        with pytest.raises(FontConversionError):
            FontToolsConverter().convert(b"not a font", kind)
