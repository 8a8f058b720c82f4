"""Strategies turning embedded resources into references in the output."""

import base64
import logging
import os
import os.path

from pdfdom.pdfexceptions import PDFDomValueError, ResourceHandlerError

log = logging.getLogger(__name__)

DEFAULT_RESOURCE_DIR = "resources"


class Resource:
    """A named binary resource (font or image) with its MIME type."""

    def __init__(
        self,
        name: str,
        data: bytes,
        mime_type: str,
        file_extension: str,
    ) -> None:
        self.name = name
        self.data = data
        self.mime_type = mime_type
        self.file_extension = file_extension

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self.name!r} {self.mime_type} "
            f"size={len(self.data)}>"
        )


class ResourceHandler:
    """Base class of the resource handling strategies."""

    def handle(self, resource: Resource) -> str:
        """Returns the reference to be placed in the output document."""
        raise NotImplementedError


class EmbedAsBase64Handler(ResourceHandler):
    """Embeds the resource into the document as a data URI."""

    def __repr__(self) -> str:
        return "<EmbedAsBase64Handler>"

    def handle(self, resource: Resource) -> str:
        data = base64.b64encode(resource.data or b"").decode("ascii")
        return f"data:{resource.mime_type};base64,{data}"


class SaveResourceToDirHandler(ResourceHandler):
    """Writes each resource into a file of a directory.

    File names are derived from the resource name; a numeric suffix is added
    when a name has already been written by this handler.
    """

    def __init__(self, directory: str | None = None) -> None:
        self.directory = directory if directory is not None else DEFAULT_RESOURCE_DIR
        self.written_names: set[str] = set()

    def __repr__(self) -> str:
        return f"<SaveResourceToDirHandler directory={self.directory!r}>"

    def handle(self, resource: Resource) -> str:
        name = self.next_unused_name(_safe_file_name(resource.name))
        path = f"{self.directory.rstrip('/')}/{name}.{resource.file_extension}"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "wb") as fp:
                fp.write(resource.data)
        except OSError as e:
            raise ResourceHandlerError(f"Cannot write {path}: {e}") from e
        self.written_names.add(name)
        log.debug("Saved %r to %s", resource, path)
        return path

    def next_unused_name(self, name: str) -> str:
        used = name
        i = 1
        while used in self.written_names:
            used = f"{name}{i}"
            i += 1
        return used


class IgnoreResourceHandler(ResourceHandler):
    """Drops the resource; the output carries an empty reference."""

    def __repr__(self) -> str:
        return "<IgnoreResourceHandler>"

    def handle(self, resource: Resource) -> str:
        return ""


def _safe_file_name(name: str) -> str:
    name = name.replace("/", "_").replace("\\", "_").strip()
    return name or "resource"


EMBED_BASE64 = "EMBED_BASE64"
SAVE_TO_DIR = "SAVE_TO_DIR"
IGNORE = "IGNORE"
RESOURCE_HANDLER_MODES = (EMBED_BASE64, SAVE_TO_DIR, IGNORE)


def create_resource_handler(
    mode: str,
    directory: str | None = None,
) -> ResourceHandler:
    """Creates a handler from a mode name (case-insensitive).

    :param mode: one of EMBED_BASE64, SAVE_TO_DIR or IGNORE.
    :param directory: the target directory for SAVE_TO_DIR.
    """
    key = mode.upper()
    if key == EMBED_BASE64:
        return EmbedAsBase64Handler()
    if key == SAVE_TO_DIR:
        return SaveResourceToDirHandler(directory)
    if key == IGNORE:
        return IgnoreResourceHandler()
    raise PDFDomValueError(
        f"Unknown resource handler mode {mode!r}, "
        f"expected one of {', '.join(RESOURCE_HANDLER_MODES)}"
    )
