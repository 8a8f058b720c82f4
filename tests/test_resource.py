import os

import pytest

from pdfdom.pdfexceptions import PDFDomValueError, ResourceHandlerError
from pdfdom.resource import (
    EmbedAsBase64Handler,
    IgnoreResourceHandler,
    Resource,
    SaveResourceToDirHandler,
    create_resource_handler,
)


def png(name="img", data=b"\x00\x01\x02"):
    return Resource(name, data, "image/png", "png")


def test_embed_as_base64():
    assert EmbedAsBase64Handler().handle(png()) == "data:image/png;base64,AAEC"


def test_ignore():
    assert IgnoreResourceHandler().handle(png()) == ""


class TestSaveResourceToDirHandler:
    def test_writes_files_with_unique_names(self, tmp_path):
        directory = str(tmp_path / "res")
        handler = SaveResourceToDirHandler(directory)
        first = handler.handle(png("doc"))
        second = handler.handle(png("doc", b"other"))
        assert first == f"{directory}/doc.png"
        assert second == f"{directory}/doc1.png"
        with open(second, "rb") as fp:
            assert fp.read() == b"other"

    def test_default_directory(self):
        assert SaveResourceToDirHandler().directory == "resources"

    def test_path_separators_are_replaced(self, tmp_path):
        handler = SaveResourceToDirHandler(str(tmp_path))
        path = handler.handle(png("a/b"))
        assert os.path.basename(path) == "a_b.png"

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")
        handler = SaveResourceToDirHandler(str(blocker / "sub"))
        with pytest.raises(ResourceHandlerError):
            handler.handle(png())


class TestCreateResourceHandler:
    @pytest.mark.parametrize(
        ("mode", "cls"),
        [
            ("EMBED_BASE64", EmbedAsBase64Handler),
            ("save_to_dir", SaveResourceToDirHandler),
            ("Ignore", IgnoreResourceHandler),
        ],
    )
    def test_modes(self, mode, cls):
        assert isinstance(create_resource_handler(mode, "out"), cls)

    def test_unknown_mode(self):
        with pytest.raises(PDFDomValueError):
            create_resource_handler("upload")
