import logging
from collections.abc import Sequence
from typing import Any

from pdfdom import settings
from pdfdom.casting import safe_floats, safe_int
from pdfdom.fonttable import FontRef
from pdfdom.geometry import PageGeometry
from pdfdom.image import ImageResource
from pdfdom.pdfexceptions import PDFDomValueError
from pdfdom.textrun import GlyphEvent
from pdfdom.utils import (
    MATRIX_IDENTITY,
    Matrix,
    cmyk_color_string,
    color_string,
    gray_color_string,
)

log = logging.getLogger(__name__)

# operator -> (stroke, fill, close)
PAINT_OPERATORS: dict[str, tuple[bool, bool, bool]] = {
    "f": (False, True, False),
    "F": (False, True, False),
    "f*": (False, True, False),
    "S": (True, False, False),
    "s": (True, False, True),
    "B": (True, True, False),
    "B*": (True, True, False),
    "b": (True, True, True),
    "b*": (True, True, True),
}


class DOMDevice:
    """Receiver of the decoded drawing events of a document.

    Events are delivered page by page: begin_page, any number of drawing
    events, end_page. Coordinates of path and image events are given in PDF
    user space and interpreted with the current transformation matrix; glyph
    events are already placed in output coordinates.
    """

    def __init__(self) -> None:
        self.ctm: Matrix = MATRIX_IDENTITY

    def __repr__(self) -> str:
        return "<DOMDevice>"

    def __enter__(self) -> "DOMDevice":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def close(self) -> None:
        pass

    @property
    def fonts_enabled(self) -> bool:
        return True

    @property
    def images_enabled(self) -> bool:
        return True

    @property
    def image_data_enabled(self) -> bool:
        return True

    def set_ctm(self, ctm: Matrix) -> None:
        self.ctm = ctm

    def begin_page(self, geometry: PageGeometry) -> None:
        pass

    def end_page(self) -> None:
        pass

    def register_font(self, font: FontRef) -> None:
        pass

    def move_to(self, x: float, y: float) -> None:
        pass

    def line_to(self, x: float, y: float) -> None:
        pass

    def close_subpath(self) -> None:
        pass

    def rect(self, x: float, y: float, w: float, h: float) -> None:
        pass

    def paint(self, stroke: bool, fill: bool, close: bool = False) -> None:
        pass

    def end_path(self) -> None:
        pass

    def draw_image(
        self,
        resource: ImageResource | None,
        x: float = 0,
        y: float = 0,
        w: float = 1,
        h: float = 1,
    ) -> None:
        pass

    def render_glyph(self, glyph: GlyphEvent) -> None:
        pass

    def set_fill_color(self, color: str) -> None:
        pass

    def set_stroke_color(self, color: str) -> None:
        pass

    def set_line_width(self, width: float) -> None:
        pass

    def set_word_spacing(self, spacing: float) -> None:
        pass

    def set_letter_spacing(self, spacing: float) -> None:
        pass

    def set_text_rendering_mode(self, mode: int) -> None:
        pass

    def process_operator(self, name: str, args: Sequence[Any] = ()) -> None:
        """Dispatches a PDF content stream operator to the event methods.

        Operators with missing or non-numeric operands are skipped, or raise
        PDFDomValueError when settings.STRICT is set. Unknown operators are
        ignored.
        """
        if name in PAINT_OPERATORS:
            (stroke, fill, close) = PAINT_OPERATORS[name]
            self.paint(stroke, fill, close)
            return
        if name == "h":
            self.close_subpath()
            return
        if name == "n":
            self.end_path()
            return

        nargs = OPERAND_COUNTS.get(name)
        if nargs is None:
            log.debug("Ignoring operator %r", name)
            return
        values = safe_floats(args, nargs)
        if values is None:
            self._malformed(name, args)
            return

        if name == "m":
            self.move_to(*values)
        elif name == "l":
            self.line_to(*values)
        elif name == "re":
            self.rect(*values)
        elif name == "w":
            self.set_line_width(values[0])
        elif name == "Tw":
            self.set_word_spacing(values[0])
        elif name == "Tc":
            self.set_letter_spacing(values[0])
        elif name == "Tr":
            mode = safe_int(values[0])
            if mode is None:
                self._malformed(name, args)
            else:
                self.set_text_rendering_mode(mode)
        elif name in ("g", "G"):
            self._set_color(name == "G", gray_color_string(*values))
        elif name in ("rg", "RG"):
            self._set_color(name == "RG", color_string(*values))
        elif name in ("k", "K"):
            self._set_color(name == "K", cmyk_color_string(*values))

    def _set_color(self, stroking: bool, color: str) -> None:
        if stroking:
            self.set_stroke_color(color)
        else:
            self.set_fill_color(color)

    def _malformed(self, name: str, args: Sequence[Any]) -> None:
        msg = f"Malformed operands for operator {name!r}: {list(args)!r}"
        if settings.STRICT:
            raise PDFDomValueError(msg)
        log.debug(msg)


OPERAND_COUNTS = {
    "m": 2,
    "l": 2,
    "re": 4,
    "w": 1,
    "Tw": 1,
    "Tc": 1,
    "Tr": 1,
    "g": 1,
    "G": 1,
    "rg": 3,
    "RG": 3,
    "k": 4,
    "K": 4,
}
