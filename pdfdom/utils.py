"""Miscellaneous Routines."""

import io
import pathlib
from collections.abc import Iterable
from html import escape
from typing import Any, BinaryIO, TextIO, Union, cast

import charset_normalizer  # For str encoding detection

from pdfdom.pdfexceptions import PDFDomTypeError

# PDF still uses 32 bits ints
INF = (1 << 31) - 1

FileOrName = Union[pathlib.PurePath, str, io.IOBase]
AnyIO = Union[TextIO, BinaryIO]

Point = tuple[float, float]
Rect = tuple[float, float, float, float]
Matrix = tuple[float, float, float, float, float, float]

#  Matrix operations
MATRIX_IDENTITY: Matrix = (1, 0, 0, 1, 0, 0)

# CSS value used wherever a colour channel is explicitly invisible
TRANSPARENT_COLOR = "rgba(0,0,0,0)"
DEFAULT_COLOR = "#000000"


class open_filename:
    """Context manager that allows opening a filename
    (str or pathlib.PurePath type is supported) and closes it on exit,
    (just like `open`), but does nothing for file-like objects.
    """

    def __init__(self, filename: FileOrName, *args: Any, **kwargs: Any) -> None:
        if isinstance(filename, pathlib.PurePath):
            filename = str(filename)
        if isinstance(filename, str):
            self.file_handler: AnyIO = open(filename, *args, **kwargs)  # noqa: SIM115
            self.closing = True
        elif isinstance(filename, io.IOBase):
            self.file_handler = cast(AnyIO, filename)
            self.closing = False
        else:
            raise PDFDomTypeError(f"Unsupported input type: {type(filename)}")

    def __enter__(self) -> AnyIO:
        return self.file_handler

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if self.closing:
            self.file_handler.close()


def make_compat_str(o: object) -> str:
    """Converts everything to string, if bytes guessing the encoding."""
    if isinstance(o, bytes):
        enc = charset_normalizer.detect(o)
        if enc["encoding"] is None:
            return str(o)
        try:
            return o.decode(enc["encoding"])
        except UnicodeDecodeError:
            return str(o)
    else:
        return str(o)


def mult_matrix(m1: Matrix, m0: Matrix) -> Matrix:
    """Returns the multiplication of two matrices.

    The result maps a point through `m1` first and then through `m0`.
    """
    (a1, b1, c1, d1, e1, f1) = m1
    (a0, b0, c0, d0, e0, f0) = m0
    return (
        a0 * a1 + c0 * b1,
        b0 * a1 + d0 * b1,
        a0 * c1 + c0 * d1,
        b0 * c1 + d0 * d1,
        a0 * e1 + c0 * f1 + e0,
        b0 * e1 + d0 * f1 + f0,
    )


def apply_matrix_pt(m: Matrix, v: Point) -> Point:
    """Applies a matrix to a point."""
    (a, b, c, d, e, f) = m
    (x, y) = v
    return a * x + c * y + e, b * x + d * y + f


def apply_matrix_norm(m: Matrix, v: Point) -> Point:
    """Equivalent to apply_matrix_pt(M, (p,q)) - apply_matrix_pt(M, (0,0))"""
    (a, b, c, d, _e, _f) = m
    (p, q) = v
    return a * p + c * q, b * p + d * q


def get_bound(pts: Iterable[Point]) -> Rect:
    """Compute a minimal rectangle that covers all the points."""
    limit: Rect = (INF, INF, -INF, -INF)
    (x0, y0, x1, y1) = limit
    for x, y in pts:
        x0 = min(x0, x)
        y0 = min(y0, y)
        x1 = max(x1, x)
        y1 = max(y1, y)
    return x0, y0, x1, y1


def enc(x: str, quote: bool = True) -> str:
    """Encodes a string for SGML/XML/HTML"""
    if isinstance(x, bytes):
        return ""
    return escape(x, quote=quote)


def bbox2str(bbox: Rect) -> str:
    (x0, y0, x1, y1) = bbox
    return f"{x0:.3f},{y0:.3f},{x1:.3f},{y1:.3f}"


def format_length(length: float, unit: str = "pt") -> str:
    """Formats a length for a CSS declaration, e.g. ``12.5pt``.

    Values are rounded to three decimals so that repeated conversions of the
    same input produce identical output.
    """
    return f"{round(float(length), 3) + 0.0}{unit}"


def color_string(r: float, g: float, b: float) -> str:
    """Creates a CSS ``#rrggbb`` colour from components in the 0..1 range."""

    def component(v: float) -> int:
        return min(255, max(0, int(v * 255)))

    return f"#{component(r):02x}{component(g):02x}{component(b):02x}"


def gray_color_string(gray: float) -> str:
    return color_string(gray, gray, gray)


def cmyk_color_string(c: float, m: float, y: float, k: float) -> str:
    return color_string((1 - c) * (1 - k), (1 - m) * (1 - k), (1 - y) * (1 - k))
