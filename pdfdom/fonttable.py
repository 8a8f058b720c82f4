"""Registry of the embedded fonts used by a document.

Fonts are deduplicated by identity, receive an output-safe family alias when
first registered, and have their embedded program converted into a format a
browser accepts the first time the payload is needed.
"""

import logging
import re
from collections.abc import Iterator

from pdfdom.fontconv import FontConverter, FontToolsConverter
from pdfdom.pdfexceptions import FontConversionError
from pdfdom.utils import Rect

log = logging.getLogger(__name__)

# "ABCDEF+Name" subset tags and "Family-Style" names both split in two
FONT_FAMILY_RE = re.compile(r"([^+^-]*)[+-]([^+]*)")

FontIdentity = tuple[str, str, str]
FontPayload = tuple[bytes, str, str]

EMPTY_PAYLOAD: FontPayload = (b"", "", "")


class FontDescriptor:
    """Vertical metrics of a font in glyph space units (1/1000 em).

    :param ascent: the descriptor /Ascent, 0 when unknown.
    :param descent: the descriptor /Descent, 0 when unknown.
    :param bbox: the font bounding box (x0, y0, x1, y1).
    """

    def __init__(
        self,
        ascent: float = 0,
        descent: float = 0,
        bbox: Rect = (0, 0, 0, 0),
    ) -> None:
        self.ascent = ascent
        self.descent = descent
        self.bbox = bbox

    def __repr__(self) -> str:
        return (
            f"<FontDescriptor ascent={self.ascent!r} descent={self.descent!r} "
            f"bbox={self.bbox!r}>"
        )


class FontProgram:
    """An embedded font program together with its container kind."""

    TRUETYPE = "TrueType"
    TYPE0_TRUETYPE = "Type0TrueType"
    TYPE1 = "Type1"
    OTHER = "Other"

    def __init__(self, kind: str, data: bytes) -> None:
        self.kind = kind
        self.data = data

    def __repr__(self) -> str:
        return f"<FontProgram kind={self.kind} size={len(self.data)}>"


class FontRef:
    """A font as referenced by glyph events.

    Two fonts with the same name may be distinct resources, so the identity
    also includes the font type and subtype.
    """

    def __init__(
        self,
        name: str,
        type: str = "Font",
        subtype: str = "",
        descriptor: FontDescriptor | None = None,
        program: FontProgram | None = None,
    ) -> None:
        self.name = name
        self.type = type
        self.subtype = subtype
        self.descriptor = descriptor if descriptor is not None else FontDescriptor()
        self.program = program

    def __repr__(self) -> str:
        return f"<FontRef {self.name!r} {self.subtype}>"

    @property
    def identity(self) -> FontIdentity:
        return (self.name, self.type, self.subtype)


class FontEntry:
    """One registered font. The converted payload is computed once on demand."""

    def __init__(
        self,
        font: FontRef,
        alias: str,
        converter: FontConverter,
    ) -> None:
        self.font = font
        self.name = font.name
        self.alias = alias
        self.descriptor = font.descriptor
        self.converter = converter
        self._payload: FontPayload | None = None

    def __repr__(self) -> str:
        return f"<FontEntry {self.name!r} alias={self.alias!r}>"

    @property
    def identity(self) -> FontIdentity:
        return self.font.identity

    def materialize(self) -> FontPayload:
        """Returns (data, mime_type, file_extension) of the output font."""
        if self._payload is None:
            self._payload = self._load()
        return self._payload

    def is_valid(self) -> bool:
        (data, _, _) = self.materialize()
        return len(data) != 0

    def _load(self) -> FontPayload:
        program = self.font.program
        if program is None or not program.data:
            log.warning("Font %r has no embedded program", self.name)
            return EMPTY_PAYLOAD

        if program.kind == FontProgram.TYPE1:
            log.warning("Type 1 font %r is not supported", self.name)
            return EMPTY_PAYLOAD

        if program.kind in (FontProgram.TRUETYPE, FontProgram.TYPE0_TRUETYPE):
            try:
                data = self.converter.convert(program.data, program.kind, self.alias)
            except FontConversionError as e:
                log.warning("Cannot normalize font %r: %s", self.name, e)
                data = b""
            if not data:
                data = program.data
            return data, "application/x-font-truetype", "ttf"

        try:
            data = self.converter.convert(program.data, program.kind, self.alias)
        except FontConversionError as e:
            log.warning("Cannot convert font %r: %s", self.name, e)
            # keep the raw program; some viewers still load bare CFF data
            return program.data, "application/octet-stream", "cff"
        if not data:
            return EMPTY_PAYLOAD
        return data, "application/x-font-woff", "woff"


class FontTable:
    """Deduplicating registry of the fonts of one conversion run."""

    def __init__(self, converter: FontConverter | None = None) -> None:
        self.converter = converter if converter is not None else FontToolsConverter()
        self._entries: dict[FontIdentity, FontEntry] = {}
        self._used_names: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def register(self, font: FontRef) -> FontEntry:
        """Adds a font unless its identity is already known.

        Returns the (possibly pre-existing) entry. Conversion of the font
        program is deferred until the entry is materialized.
        """
        entry = self._entries.get(font.identity)
        if entry is not None:
            return entry
        alias = self.next_used_name(find_font_family(font.name))
        entry = FontEntry(font, alias, self.converter)
        self._entries[font.identity] = entry
        self._used_names.add(alias)
        log.debug("Registered font %r as %r", font.name, alias)
        return entry

    def get(self, identity: FontIdentity) -> FontEntry | None:
        return self._entries.get(identity)

    def resolve(self, identity: FontIdentity) -> str | None:
        """Returns the alias of a registered font with a usable payload."""
        entry = self._entries.get(identity)
        if entry is None or not entry.is_valid():
            return None
        return entry.alias

    def materialize(self, entry: FontEntry) -> FontPayload:
        return entry.materialize()

    def entries(self) -> Iterator[FontEntry]:
        return iter(list(self._entries.values()))

    def valid_entries(self) -> Iterator[FontEntry]:
        for entry in self.entries():
            if entry.is_valid():
                yield entry

    def next_used_name(self, name: str) -> str:
        """Returns `name`, or `name` with the first free numeric suffix."""
        used = name
        i = 1
        while used in self._used_names:
            used = f"{name}{i}"
            i += 1
        return used


def find_font_family(name: str) -> str:
    """Derives a CSS-safe family name from a PDF font name.

    >>> find_font_family("ABCDEF+Arial")
    'ABCDEF Arial'
    """
    family = name
    m = FONT_FAMILY_RE.search(name)
    if m:
        family = f"{m.group(1)} {m.group(2)}"
    return family.replace("+", " ")
