__all__ = [
    "FontConversionError",
    "ImageConversionError",
    "PDFDomException",
    "PDFDomTypeError",
    "PDFDomValueError",
    "ResourceHandlerError",
]


class PDFDomException(Exception):
    """Base class for all errors raised by pdfdom."""


class PDFDomTypeError(PDFDomException, TypeError):
    pass


class PDFDomValueError(PDFDomException, ValueError):
    pass


class FontConversionError(PDFDomException):
    """Raised when an embedded font program cannot be converted."""


class ImageConversionError(PDFDomException):
    """Raised when image data cannot be decoded, encoded or rasterized."""


class ResourceHandlerError(PDFDomException, IOError):
    """Raised when a resource handler cannot produce a reference."""
