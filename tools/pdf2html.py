#!/usr/bin/env python3
"""Converts PDF pages to an HTML document of absolutely positioned boxes.

Text runs, rectangles, lines and images are placed where the PDF draws them.
Embedded fonts and images are either embedded as data URIs, saved into a
directory or left out.
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any

import pdfdom
import pdfdom.high_level
from pdfdom.layout import DOMParams
from pdfdom.resource import (
    EMBED_BASE64,
    IGNORE,
    RESOURCE_HANDLER_MODES,
    create_resource_handler,
)

logging.basicConfig()

DEFAULT_FONT_DIR = "fonts"
DEFAULT_IMAGE_DIR = "images"


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, add_help=True)
    parser.add_argument("infile", type=str, help="The PDF file to convert.")
    parser.add_argument(
        "outfile",
        type=str,
        nargs="?",
        default=None,
        help="The HTML file to write. Defaults to the input file name with "
        "an .html extension.",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"pdfdom v{pdfdom.__version__}",
    )
    parser.add_argument(
        "--debug",
        "-d",
        default=False,
        action="store_true",
        help="Use debug logging level.",
    )
    parser.add_argument(
        "--disable-caching",
        "-C",
        default=False,
        action="store_true",
        help="If caching or resources, such as fonts, should be disabled.",
    )

    parse_params = parser.add_argument_group(
        "Parser",
        description="Used during PDF parsing",
    )
    parse_params.add_argument(
        "--start-page",
        type=int,
        default=0,
        help="Zero-based index of the first page to convert.",
    )
    parse_params.add_argument(
        "--end-page",
        type=int,
        default=None,
        help="Zero-based index of the last page to convert.",
    )
    parse_params.add_argument(
        "--maxpages",
        "-m",
        type=int,
        default=0,
        help="The maximum number of pages to parse.",
    )
    parse_params.add_argument(
        "--password",
        "-P",
        type=str,
        default="",
        help="The password to use for decrypting PDF file.",
    )

    dom_params = parser.add_argument_group(
        "Box tree",
        description="Used while building the positioned boxes.",
    )
    dom_params.add_argument(
        "--font-mode",
        "-fm",
        type=str,
        default=EMBED_BASE64,
        help="How embedded fonts are written: "
        f"{'|'.join(RESOURCE_HANDLER_MODES)}.",
    )
    dom_params.add_argument(
        "--font-dir",
        "-fdir",
        type=str,
        default=DEFAULT_FONT_DIR,
        help="The directory fonts are saved to in SAVE_TO_DIR mode.",
    )
    dom_params.add_argument(
        "--image-mode",
        "-im",
        type=str,
        default=EMBED_BASE64,
        help="How images are written: "
        f"{'|'.join(RESOURCE_HANDLER_MODES)}.",
    )
    dom_params.add_argument(
        "--image-dir",
        "-idir",
        type=str,
        default=DEFAULT_IMAGE_DIR,
        help="The directory images are saved to in SAVE_TO_DIR mode.",
    )
    dom_params.add_argument(
        "--unit",
        type=str,
        default="pt",
        help="The CSS unit of all lengths in the output.",
    )
    dom_params.add_argument(
        "--disable-graphics",
        default=False,
        action="store_true",
        help="Ignore rectangles, lines and other paths.",
    )
    dom_params.add_argument(
        "--disable-images",
        default=False,
        action="store_true",
        help="Ignore images.",
    )

    output_params = parser.add_argument_group(
        "Output",
        description="Used during output generation.",
    )
    output_params.add_argument(
        "--codec",
        "-c",
        type=str,
        default="utf-8",
        help="Text encoding to use in output file.",
    )
    return parser


def build_params(args: argparse.Namespace) -> DOMParams:
    font_handler = create_resource_handler(args.font_mode, args.font_dir)
    image_handler = create_resource_handler(args.image_mode, args.image_dir)
    return DOMParams(
        unit=args.unit,
        disable_graphics=args.disable_graphics,
        disable_images=args.disable_images,
        disable_image_data=args.image_mode.upper() == IGNORE,
        start_page=args.start_page,
        end_page=args.end_page,
        font_handler=font_handler,
        image_handler=image_handler,
    )


def output_file_name(infile: str) -> str:
    base = infile[:-4] if infile.lower().endswith(".pdf") else infile
    return base + ".html"


def convert(args: argparse.Namespace) -> Any:
    params = build_params(args)
    outfile = args.outfile or output_file_name(args.infile)
    if outfile == "-":
        outfp: Any = sys.stdout
    else:
        outfp = open(outfile, "wb")  # noqa: SIM115
    try:
        pdfdom.high_level.convert_pdf_to_html(
            args.infile,
            outfp,
            params=params,
            codec=args.codec,
            password=args.password,
            maxpages=args.maxpages,
            caching=not args.disable_caching,
        )
    finally:
        if outfp is not sys.stdout:
            outfp.close()
    return outfile


def parse_args(args: Sequence[str] | None) -> argparse.Namespace:
    parsed_args = create_parser().parse_args(args=args)
    if parsed_args.font_mode.upper() not in RESOURCE_HANDLER_MODES:
        raise SystemExit(f"Unknown font mode: {parsed_args.font_mode}")
    if parsed_args.image_mode.upper() not in RESOURCE_HANDLER_MODES:
        raise SystemExit(f"Unknown image mode: {parsed_args.image_mode}")
    return parsed_args


def main(args: Sequence[str] | None = None) -> int:
    parsed_args = parse_args(args)
    if parsed_args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    convert(parsed_args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
