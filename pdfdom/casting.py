import itertools
from collections.abc import Sequence
from typing import Any

from pdfdom.utils import Rect


def safe_int(o: Any) -> int | None:
    try:
        return int(o)
    except (TypeError, ValueError, OverflowError):
        return None


def safe_float(o: Any) -> float | None:
    try:
        return float(o)
    except (TypeError, ValueError, OverflowError):
        return None


def safe_floats(args: Sequence[Any], n: int) -> tuple[float, ...] | None:
    """Converts exactly `n` operands to floats, or returns None."""
    if len(args) < n:
        return None
    values = [safe_float(arg) for arg in args[:n]]
    if any(v is None for v in values):
        return None
    return tuple(v for v in values if v is not None)


def safe_rect_list(value: Any) -> Rect | None:
    try:
        values = list(itertools.islice(value, 4))
    except TypeError:
        return None

    if len(values) != 4:
        return None

    rect = safe_floats(values, 4)
    if rect is None:
        return None
    (x0, y0, x1, y1) = rect
    return x0, y0, x1, y1
