"""Functions that can be used for the most common use-cases for pdfdom"""

import logging
import sys
from io import StringIO
from typing import Any, BinaryIO, cast

from pdfdom.converter import HTMLConverter, PDFBoxTreeDevice
from pdfdom.layout import DOMDocument, DOMParams
from pdfdom.pdfsource import process_pdf
from pdfdom.utils import AnyIO, FileOrName, open_filename


def build_box_tree(
    pdf_file: FileOrName,
    params: DOMParams | None = None,
    password: str = "",
    maxpages: int = 0,
    caching: bool = True,
) -> DOMDocument:
    """Builds the box tree of a PDF file.

    :param pdf_file: Either a file path or a file-like object for the PDF file
        to be worked on.
    :param params: A DOMParams object. If None, uses the default parameters.
    :param password: For encrypted PDFs, the password to decrypt.
    :param maxpages: The maximum number of pages to parse
    :param caching: If resources should be cached
    :return: the DOMDocument holding the pages and boxes.
    """
    if params is None:
        params = DOMParams()

    with open_filename(pdf_file, "rb") as fp:
        fp = cast(BinaryIO, fp)  # we opened in binary mode
        device = PDFBoxTreeDevice(params)
        title = process_pdf(
            fp,
            device,
            password=password,
            maxpages=maxpages,
            caching=caching,
            end_page=params.end_page,
        )
        return device.finish_document(title)


def convert_pdf_to_html(
    inf: FileOrName,
    outfp: AnyIO,
    params: DOMParams | None = None,
    codec: str = "utf-8",
    password: str = "",
    maxpages: int = 0,
    caching: bool = True,
    debug: bool = False,
    **kwargs: Any,
) -> DOMDocument:
    """Converts a PDF file to an HTML document written to outfp.

    :param inf: a file path or a file-like object to read PDF structure from.
    :param outfp: a file-like object to write the HTML to. Binary streams
        need a codec; for text streams pass an empty codec.
    :param params: A DOMParams object. If None, uses the default parameters.
    :param codec: Output encoding.
    :param password: For encrypted PDFs, the password to decrypt.
    :param maxpages: How many pages to stop parsing after
    :param caching: If resources should be cached
    :param debug: Output more logging data
    :return: the DOMDocument the output was written from.
    """
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
    if params is None:
        params = DOMParams()

    if outfp == sys.stdout:
        outfp = sys.stdout.buffer

    with open_filename(inf, "rb") as fp:
        fp = cast(BinaryIO, fp)  # we opened in binary mode
        device = HTMLConverter(outfp, codec=codec, params=params)
        title = process_pdf(
            fp,
            device,
            password=password,
            maxpages=maxpages,
            caching=caching,
            end_page=params.end_page,
        )
        doc = device.finish_document(title)
    device.close()
    return doc


def convert_pdf_to_html_string(
    pdf_file: FileOrName,
    params: DOMParams | None = None,
    password: str = "",
    maxpages: int = 0,
    caching: bool = True,
) -> str:
    """Converts a PDF file and returns the HTML document as a string.

    :param pdf_file: Either a file path or a file-like object for the PDF file
        to be worked on.
    :param params: A DOMParams object. If None, uses the default parameters.
    :param password: For encrypted PDFs, the password to decrypt.
    :param maxpages: The maximum number of pages to parse
    :param caching: If resources should be cached
    :return: the HTML document.
    """
    with StringIO() as output_string:
        convert_pdf_to_html(
            pdf_file,
            output_string,
            params=params,
            codec="",
            password=password,
            maxpages=maxpages,
            caching=caching,
        )
        return output_string.getvalue()
