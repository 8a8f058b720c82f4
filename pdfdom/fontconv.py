"""Conversion of embedded font programs into browser-loadable fonts."""

import logging
from io import BytesIO

from fontTools.agl import toUnicode
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.boundsPen import BoundsPen
from fontTools.ttLib import TTFont, newTable

from pdfdom.pdfexceptions import FontConversionError

log = logging.getLogger(__name__)

# signature of an OpenType font with CFF outlines
OTTO_TAG = b"OTTO"


class FontConverter:
    """Converts font program bytes of a given container kind.

    Implementations raise FontConversionError when the data cannot be
    converted. Returning empty bytes means "nothing usable".
    """

    def convert(self, data: bytes, kind: str, name: str = "") -> bytes:
        raise NotImplementedError


class FontToolsConverter(FontConverter):
    """Converter built on fontTools.

    TrueType programs are re-serialized with any table a browser requires
    added; bare CFF and CFF-flavoured OpenType programs are wrapped into a
    WOFF font.
    """

    def __init__(self, units_per_em: int = 1000) -> None:
        self.units_per_em = units_per_em

    def convert(self, data: bytes, kind: str, name: str = "") -> bytes:
        # kinds as in pdfdom.fonttable.FontProgram
        try:
            if kind in ("TrueType", "Type0TrueType"):
                return self.normalize_truetype(data, name)
            if data[:4] == OTTO_TAG:
                return self.opentype_to_woff(data)
            return self.cff_to_woff(data, name)
        except FontConversionError:
            raise
        except Exception as e:
            raise FontConversionError(f"{kind} font {name!r}: {e}") from e

    def normalize_truetype(self, data: bytes, name: str = "") -> bytes:
        font = TTFont(BytesIO(data))
        if "glyf" not in font or "hmtx" not in font:
            raise FontConversionError("TrueType program without outlines")
        fb = FontBuilder(font=font)
        family = name or "Embedded"
        if "cmap" not in font:
            fb.setupCharacterMap(_unicode_map(font.getGlyphOrder()))
        if "name" not in font:
            fb.setupNameTable({"familyName": family, "styleName": "Regular"})
        if "OS/2" not in font:
            fb.setupOS2()
        if "post" not in font:
            fb.setupPost()
        return _save(font)

    def opentype_to_woff(self, data: bytes) -> bytes:
        font = TTFont(BytesIO(data))
        font.flavor = "woff"
        return _save(font)

    def cff_to_woff(self, data: bytes, name: str = "") -> bytes:
        """Builds an OpenType wrapper around a bare CFF program."""
        cff_table = newTable("CFF ")
        cff_table.decompile(data, TTFont())
        cff = cff_table.cff
        if not cff.fontNames:
            raise FontConversionError("CFF program without fonts")
        top = cff[cff.fontNames[0]]
        charstrings = top.CharStrings
        glyph_order = top.getGlyphOrder()

        metrics = {}
        for glyph_name in glyph_order:
            cs = charstrings[glyph_name]
            pen = BoundsPen(charstrings)
            cs.draw(pen)
            lsb = pen.bounds[0] if pen.bounds is not None else 0
            metrics[glyph_name] = (round(cs.width), round(lsb))

        (_, y0, _, y1) = getattr(top, "FontBBox", (0, 0, 0, 0))
        fb = FontBuilder(self.units_per_em, isTTF=False)
        fb.font.sfntVersion = "OTTO"
        fb.setupGlyphOrder(glyph_order)
        fb.setupCharacterMap(_unicode_map(glyph_order))
        fb.setupHorizontalMetrics(metrics)
        fb.setupHorizontalHeader(ascent=round(y1), descent=round(y0))
        fb.setupNameTable(
            {"familyName": name or cff.fontNames[0], "styleName": "Regular"}
        )
        fb.setupOS2(sTypoAscender=round(y1), sTypoDescender=round(y0))
        fb.setupPost()
        fb.font["CFF "] = cff_table
        fb.font.flavor = "woff"
        return _save(fb.font)


def _unicode_map(glyph_order: list[str]) -> dict[int, str]:
    cmap = {}
    for glyph_name in glyph_order:
        u = toUnicode(glyph_name)
        if len(u) == 1 and ord(u) not in cmap:
            cmap[ord(u)] = glyph_name
    return cmap


def _save(font: TTFont) -> bytes:
    buf = BytesIO()
    font.save(buf)
    return buf.getvalue()
