"""Path accumulation and classification of painted paths into shapes.

Path construction operators append straight segments (already mapped to output
coordinates) to a buffer. When the path is painted, the buffer is classified
as a single rectangle, a set of axis-aligned lines, or an opaque path that has
to be rasterized, and the buffer is cleared.
"""

import logging
from collections.abc import Sequence
from typing import Union

from pdfdom.geometry import PageGeometry, transform_point
from pdfdom.utils import (
    DEFAULT_COLOR,
    MATRIX_IDENTITY,
    Matrix,
    Point,
    Rect,
    get_bound,
)

log = logging.getLogger(__name__)

# Coordinates are compared after rounding to this many decimals, which absorbs
# floating point noise introduced by the transformations.
COORD_PRECISION = 3

# Lines thinner than this are drawn with this width.
MIN_LINE_WIDTH = 0.5


def _key(v: float) -> float:
    return round(v, COORD_PRECISION) + 0.0


class PathSegment:
    """A directed straight line (x1, y1) -> (x2, y2) in output coordinates."""

    def __init__(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.x1 = x1
        self.y1 = y1
        self.x2 = x2
        self.y2 = y2

    def __repr__(self) -> str:
        return (
            f"<PathSegment ({self.x1:.3f},{self.y1:.3f})"
            f"-({self.x2:.3f},{self.y2:.3f})>"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathSegment):
            return NotImplemented
        return self.points == other.points

    def __hash__(self) -> int:
        return hash(self.points)

    @property
    def points(self) -> tuple[Point, Point]:
        return (_key(self.x1), _key(self.y1)), (_key(self.x2), _key(self.y2))

    def is_horizontal(self) -> bool:
        return _key(self.y1) == _key(self.y2)

    def is_vertical(self) -> bool:
        return _key(self.x1) == _key(self.x2)

    def is_axis_aligned(self) -> bool:
        return self.is_horizontal() or self.is_vertical()

    def is_empty(self) -> bool:
        return self.is_horizontal() and self.is_vertical()


class Rectangle:
    """A closed axis-aligned quad, drawn as a bordered and/or filled box."""

    def __init__(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        stroke: bool = False,
        fill: bool = False,
        line_width: float = 0,
        stroke_color: str | None = DEFAULT_COLOR,
        fill_color: str | None = DEFAULT_COLOR,
    ) -> None:
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.stroke = stroke
        self.fill = fill
        self.line_width = line_width
        self.stroke_color = stroke_color
        self.fill_color = fill_color

    def __repr__(self) -> str:
        return (
            f"<Rectangle x={self.x:.3f} y={self.y:.3f} w={self.width:.3f} "
            f"h={self.height:.3f} stroke={self.stroke} fill={self.fill}>"
        )

    @property
    def bounds(self) -> Rect:
        return (
            _key(self.x),
            _key(self.y),
            _key(self.x + self.width),
            _key(self.y + self.height),
        )

    def get_box(self) -> Rect:
        """Returns (left, top, width, height) of the box to be drawn.

        A stroked rectangle is drawn as a box whose border is centred on the
        path, so the box shrinks by the stroke width. Sizes that would become
        zero or negative are replaced by 1.
        """
        wcor = self.line_width if self.stroke else 0.0
        offset = wcor / 2
        width = self.width - wcor
        height = self.height - wcor
        if width <= 0:
            width = 1
        if height <= 0:
            height = 1
        return self.x - offset, self.y - offset, width, height


class Line:
    """A single stroked axis-aligned segment."""

    def __init__(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        line_width: float = 0,
        color: str | None = DEFAULT_COLOR,
    ) -> None:
        self.x1 = x1
        self.y1 = y1
        self.x2 = x2
        self.y2 = y2
        self.line_width = line_width
        self.color = color

    def __repr__(self) -> str:
        return (
            f"<Line ({self.x1:.3f},{self.y1:.3f})-({self.x2:.3f},{self.y2:.3f}) "
            f"width={self.line_width:.3f}>"
        )

    @property
    def stroke_width(self) -> float:
        return max(self.line_width, MIN_LINE_WIDTH)

    def is_vertical(self) -> bool:
        return abs(self.x2 - self.x1) < MIN_LINE_WIDTH

    def is_horizontal(self) -> bool:
        return abs(self.y2 - self.y1) < MIN_LINE_WIDTH

    @property
    def left(self) -> float:
        return min(self.x1, self.x2)

    @property
    def top(self) -> float:
        return min(self.y1, self.y2)

    @property
    def width(self) -> float:
        return 0 if self.is_vertical() else abs(self.x2 - self.x1)

    @property
    def height(self) -> float:
        return abs(self.y2 - self.y1) if self.is_vertical() else 0

    @property
    def border_side(self) -> str:
        return "border-right" if self.is_vertical() else "border-bottom"


class OpaquePath:
    """A path that cannot be expressed with boxes and must be rasterized."""

    def __init__(
        self,
        segments: Sequence[PathSegment],
        stroke: bool = False,
        fill: bool = False,
        line_width: float = 0,
        stroke_color: str | None = DEFAULT_COLOR,
        fill_color: str | None = DEFAULT_COLOR,
    ) -> None:
        self.segments = list(segments)
        self.stroke = stroke
        self.fill = fill
        self.line_width = line_width
        self.stroke_color = stroke_color
        self.fill_color = fill_color

    def __repr__(self) -> str:
        return f"<OpaquePath segments={len(self.segments)}>"

    @property
    def bbox(self) -> Rect:
        pts: list[Point] = []
        for s in self.segments:
            pts.append((s.x1, s.y1))
            pts.append((s.x2, s.y2))
        return get_bound(pts)


Shape = Union[Rectangle, Line, OpaquePath]


def to_rectangle(path: Sequence[PathSegment]) -> Rect | None:
    """Returns (x0, y0, x1, y1) when the path is a closed orthogonal quad.

    Four segments spanning exactly two distinct x and two distinct y
    coordinates form a rectangle regardless of winding or starting corner.
    """
    if len(path) != 4:
        return None
    xs = set()
    ys = set()
    for seg in path:
        ((x1, y1), (x2, y2)) = seg.points
        xs.update((x1, x2))
        ys.update((y1, y2))
    if len(xs) != 2 or len(ys) != 2:
        return None
    return min(xs), min(ys), max(xs), max(ys)


def classify_path(
    path: Sequence[PathSegment],
    stroke: bool,
    fill: bool,
    line_width: float = 0,
    stroke_color: str | None = DEFAULT_COLOR,
    fill_color: str | None = DEFAULT_COLOR,
) -> list[Shape]:
    """Classifies a painted path.

    The result is a single Rectangle, one Line per axis-aligned segment of a
    stroked path, or a single OpaquePath. An empty path yields nothing.
    """
    if not path:
        return []

    rect = to_rectangle(path)
    if rect is not None:
        (x0, y0, x1, y1) = rect
        return [
            Rectangle(
                x0,
                y0,
                x1 - x0,
                y1 - y0,
                stroke=stroke,
                fill=fill,
                line_width=line_width,
                stroke_color=stroke_color,
                fill_color=fill_color,
            )
        ]

    if stroke:
        lines: list[Shape] = []
        skipped = []
        for seg in path:
            if seg.is_axis_aligned():
                lines.append(
                    Line(seg.x1, seg.y1, seg.x2, seg.y2, line_width, stroke_color)
                )
            else:
                skipped.append(seg)
        if lines:
            for seg in skipped:
                log.warning("Skipping non-orthogonal stroked segment %r", seg)
            return lines

    return [
        OpaquePath(
            path,
            stroke=stroke,
            fill=fill,
            line_width=line_width,
            stroke_color=stroke_color,
            fill_color=fill_color,
        )
    ]


class PathAccumulator:
    """Buffers the segments of the path under construction.

    Points are given in PDF user space and mapped to output coordinates with
    the current transformation matrix and page geometry.
    """

    def __init__(self, page: PageGeometry | None = None) -> None:
        self.page = page if page is not None else PageGeometry(None)
        self.ctm: Matrix = MATRIX_IDENTITY
        self.segments: list[PathSegment] = []
        self.cursor: Point | None = None
        self.start: Point | None = None

    def __len__(self) -> int:
        return len(self.segments)

    def _transform(self, x: float, y: float) -> Point:
        return transform_point(x, y, self.ctm, self.page)

    def move_to(self, x: float, y: float) -> None:
        self.cursor = self.start = self._transform(x, y)

    def line_to(self, x: float, y: float) -> None:
        pt = self._transform(x, y)
        if self.cursor is None:
            # a path must begin with a move; treat a stray line as one
            self.cursor = self.start = pt
            return
        (x1, y1) = self.cursor
        self.segments.append(PathSegment(x1, y1, *pt))
        self.cursor = pt

    def close_subpath(self) -> None:
        if self.cursor is None or self.start is None:
            return
        seg = PathSegment(*self.cursor, *self.start)
        # a subpath already ending at its start needs no closing segment
        if not seg.is_empty():
            self.segments.append(seg)
        self.cursor = self.start

    def rect(self, x: float, y: float, w: float, h: float) -> None:
        corners = [
            self._transform(x, y),
            self._transform(x + w, y),
            self._transform(x + w, y + h),
            self._transform(x, y + h),
        ]
        for i, (x1, y1) in enumerate(corners):
            (x2, y2) = corners[(i + 1) % 4]
            self.segments.append(PathSegment(x1, y1, x2, y2))
        self.cursor = self.start = corners[0]

    def paint(
        self,
        stroke: bool,
        fill: bool,
        close: bool = False,
        line_width: float = 0,
        stroke_color: str | None = DEFAULT_COLOR,
        fill_color: str | None = DEFAULT_COLOR,
    ) -> list[Shape]:
        """Classifies the buffered path and resets the buffer."""
        if close:
            self.close_subpath()
        shapes = classify_path(
            self.segments,
            stroke,
            fill,
            line_width=line_width,
            stroke_color=stroke_color,
            fill_color=fill_color,
        )
        self.reset()
        return shapes

    def reset(self) -> None:
        """Discards the buffered path (the ``n`` operator)."""
        self.segments = []
        self.cursor = None
        self.start = None
