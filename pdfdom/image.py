"""Image resources: decoding of embedded images and rasterizing of paths.

Embedded images are re-encoded into a format a browser can show (JPEG data is
passed through, bitmaps become PNG). Paths that cannot be expressed with boxes
are drawn into a transparent PNG covering their bounding box.
"""

import logging
import math
from collections.abc import Iterator, Sequence
from io import BytesIO
from typing import Any, Literal

from PIL import Image, ImageDraw
from pdfminer.pdfcolor import LITERAL_DEVICE_CMYK
from pdfminer.pdftypes import (
    LITERALS_DCT_DECODE,
    LITERALS_JBIG2_DECODE,
    LITERALS_JPX_DECODE,
    int_value,
    resolve1,
    stream_value,
)
from pdfminer.psparser import LIT

from pdfdom.paths import OpaquePath, PathSegment
from pdfdom.pdfexceptions import ImageConversionError
from pdfdom.resource import Resource
from pdfdom.utils import TRANSPARENT_COLOR, Point

log = logging.getLogger(__name__)

LITERAL_INDEXED = LIT("Indexed")


class ImageResource(Resource):
    """Binary image data ready to be handed to a resource handler."""

    def __init__(
        self,
        name: str,
        data: bytes,
        mime_type: str = "image/png",
        file_extension: str = "png",
    ) -> None:
        super().__init__(name, data, mime_type, file_extension)


def _png(img: Image.Image) -> bytes:
    buf = BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def encode_image_stream(stream: Any, name: str) -> ImageResource:
    """Encodes a PDF image XObject stream for the output document.

    :param stream: a pdfminer PDFStream holding the image.
    :param name: the base name of the produced resource.
    :raises ImageConversionError: the encoding is not supported.
    """
    filters = stream.get_filters()
    if filters and filters[-1][0] in LITERALS_DCT_DECODE:
        data = stream.get_data()
        if _colorspace(stream) is LITERAL_DEVICE_CMYK:
            # browsers do not render CMYK JPEG reliably
            try:
                with Image.open(BytesIO(data)) as img:
                    return ImageResource(name, _png(img.convert("RGB")))
            except OSError as e:
                raise ImageConversionError(f"Cannot decode JPEG image: {e}") from e
        return ImageResource(name, data, "image/jpeg", "jpg")

    if filters and filters[-1][0] in LITERALS_JPX_DECODE:
        try:
            with Image.open(BytesIO(stream.get_data())) as img:
                return ImageResource(name, _png(img))
        except OSError as e:
            raise ImageConversionError(f"Cannot decode JPEG 2000 image: {e}") from e

    for filter_name, _ in filters:
        if filter_name in LITERALS_JBIG2_DECODE:
            raise ImageConversionError("JBIG2 images are not supported")

    return ImageResource(name, _png(_bitmap(stream)))


def _colorspace(stream: Any) -> Any:
    cs = resolve1(stream.get_any(("CS", "ColorSpace")))
    if isinstance(cs, list):
        return resolve1(cs[0]) if cs else None
    return cs


def _bitmap(stream: Any) -> Image.Image:
    """Builds a Pillow image from uncompressed samples."""
    width = int_value(stream.get_any(("W", "Width")))
    height = int_value(stream.get_any(("H", "Height")))
    bits = int_value(stream.get_any(("BPC", "BitsPerComponent"), 1))
    if stream.get_any(("IM", "ImageMask")):
        bits = 1
    if width <= 0 or height <= 0:
        raise ImageConversionError(f"Invalid image size {width}x{height}")
    data = stream.get_data()

    cs = resolve1(stream.get_any(("CS", "ColorSpace")))
    if isinstance(cs, list) and cs and resolve1(cs[0]) is LITERAL_INDEXED and bits == 8:
        hival = int_value(cs[2])
        lookup = resolve1(cs[3])
        if not isinstance(lookup, bytes):
            lookup = stream_value(lookup).get_data()
        channels = len(lookup) // (hival + 1)
        data = bytes(b for i in data for b in lookup[channels * i : channels * (i + 1)])
    else:
        channels = len(data) * 8 // (width * height * bits)

    mode: Literal["1", "L", "RGB", "CMYK"]
    if bits == 1:
        mode = "1"
    elif bits == 8 and channels == 1:
        mode = "L"
    elif bits == 8 and channels == 3:
        mode = "RGB"
    elif bits == 8 and channels == 4:
        mode = "CMYK"
    else:
        raise ImageConversionError(
            f"Unsupported bitmap: {bits} bits, {channels} channels"
        )
    try:
        img = Image.frombytes(mode, (width, height), data, "raw")
    except ValueError as e:
        raise ImageConversionError(f"Cannot decode bitmap: {e}") from e
    if mode == "CMYK":
        img = img.convert("RGB")
    return img


class PathRasterizer:
    """Draws an OpaquePath into a transparent PNG.

    :param resolution: pixels per output unit.
    """

    def __init__(self, resolution: float = 1.0) -> None:
        self.resolution = resolution

    def __repr__(self) -> str:
        return f"<PathRasterizer resolution={self.resolution}>"

    def rasterize(self, path: OpaquePath, name: str = "path") -> ImageResource:
        if not path.segments:
            raise ImageConversionError("Cannot rasterize an empty path")
        (x0, y0, x1, y1) = path.bbox
        pad = path.line_width / 2 if path.stroke else 0
        x0 -= pad
        y0 -= pad
        scale = self.resolution
        width = max(1, math.ceil((x1 + pad - x0) * scale))
        height = max(1, math.ceil((y1 + pad - y0) * scale))

        def pt(x: float, y: float) -> Point:
            return (x - x0) * scale, (y - y0) * scale

        img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)
        try:
            if path.fill and _visible(path.fill_color):
                for chain in _chains(path.segments):
                    if len(chain) >= 3:
                        draw.polygon([pt(x, y) for (x, y) in chain], fill=path.fill_color)
            if path.stroke and _visible(path.stroke_color):
                line_width = max(1, round(path.line_width * scale))
                for seg in path.segments:
                    draw.line(
                        [pt(seg.x1, seg.y1), pt(seg.x2, seg.y2)],
                        fill=path.stroke_color,
                        width=line_width,
                    )
        except ValueError as e:
            raise ImageConversionError(f"Cannot draw path: {e}") from e
        return ImageResource(name, _png(img))


def _visible(color: str | None) -> bool:
    return color is not None and color != TRANSPARENT_COLOR


def _chains(segments: Sequence[PathSegment]) -> Iterator[list[Point]]:
    """Groups consecutive connected segments into point lists (subpaths)."""
    chain: list[Point] = []
    for seg in segments:
        start = (seg.x1, seg.y1)
        if chain and chain[-1] != start:
            yield chain
            chain = []
        if not chain:
            chain.append(start)
        chain.append((seg.x2, seg.y2))
    if chain:
        yield chain
