"""Mapping of PDF user space onto the top-left based output space.

PDF pages use a bottom-left origin with the y axis pointing up, and a page may
be displayed rotated by a multiple of 90 degrees. The output space has its
origin in the top-left corner of the displayed page, the y axis pointing down,
and spans ``[0, width] x [0, height]`` of the rotation-corrected crop box.
"""

import logging
import math

from pdfdom.utils import (
    Matrix,
    Point,
    Rect,
    apply_matrix_norm,
    apply_matrix_pt,
    bbox2str,
    get_bound,
    mult_matrix,
)

log = logging.getLogger(__name__)

ROTATIONS = (0, 90, 180, 270)


class PageGeometry:
    """Per-page constants needed to place content: crop box and rotation.

    :param cropbox: the crop box (x0, y0, x1, y1) in PDF units, or None when
        the page has no resolvable crop or media box.
    :param rotation: the page /Rotate value; normalized to 0, 90, 180 or 270.
    """

    def __init__(self, cropbox: Rect | None, rotation: int = 0) -> None:
        self.cropbox = cropbox
        rotation = int(rotation) % 360
        if rotation not in ROTATIONS:
            log.warning("Unsupported page rotation %d, using 0", rotation)
            rotation = 0
        self.rotation = rotation
        self.matrix = self._page_matrix()

    def __repr__(self) -> str:
        box = bbox2str(self.cropbox) if self.cropbox is not None else None
        return f"<PageGeometry cropbox={box} rotation={self.rotation}>"

    @property
    def crop_width(self) -> float:
        if self.cropbox is None:
            return 0
        (x0, _, x1, _) = self.cropbox
        return abs(x1 - x0)

    @property
    def crop_height(self) -> float:
        if self.cropbox is None:
            return 0
        (_, y0, _, y1) = self.cropbox
        return abs(y1 - y0)

    def get_size(self) -> tuple[float, float] | None:
        """Output page size, with width and height swapped for 90/270."""
        if self.cropbox is None:
            return None
        if self.rotation in (90, 270):
            return self.crop_height, self.crop_width
        return self.crop_width, self.crop_height

    def _page_matrix(self) -> Matrix:
        w = self.crop_width
        h = self.crop_height
        if self.cropbox is not None:
            (x0, y0, x1, y1) = self.cropbox
            llx = min(x0, x1)
            lly = min(y0, y1)
        else:
            llx = lly = 0
        # shift the crop box origin to (0, 0) and flip the y axis
        flip: Matrix = (1, 0, 0, -1, -llx, h + lly)
        if self.rotation == 90:
            turn: Matrix = (0, 1, -1, 0, h, 0)
        elif self.rotation == 180:
            turn = (-1, 0, 0, -1, w, h)
        elif self.rotation == 270:
            turn = (0, -1, 1, 0, 0, w)
        else:
            turn = (1, 0, 0, 1, 0, 0)
        return mult_matrix(flip, turn)


def transform_point(x: float, y: float, ctm: Matrix, page: PageGeometry) -> Point:
    """Maps a point in PDF user space to output coordinates."""
    return apply_matrix_pt(mult_matrix(ctm, page.matrix), (x, y))


def transform_length(w: float, ctm: Matrix) -> float:
    """Maps a scalar thickness through the linear part of the CTM.

    The length is measured along the transformed x basis vector, so rotations
    keep the thickness and only scaling changes it.
    """
    (dx, dy) = apply_matrix_norm(ctm, (w, 0))
    return math.hypot(dx, dy)


def transform_rect(rect: Rect, ctm: Matrix, page: PageGeometry) -> Rect:
    """Output bounding box of a user-space rectangle (x0, y0, x1, y1)."""
    (x0, y0, x1, y1) = rect
    corners = [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]
    return get_bound(transform_point(x, y, ctm, page) for (x, y) in corners)
