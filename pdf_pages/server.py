from __future__ import annotations

import functools
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from . import pdf_tools
from .config import get_log_level
from .errors import PdfToolError

mcp = FastMCP("PDF Page Tools")


def _wrap_result(result: Any) -> Any:
    if isinstance(result, Path):
        return str(result)
    return result


def _handle_errors(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return _wrap_result(fn(*args, **kwargs))
        except PdfToolError as exc:
            return {"error": str(exc), "error_type": type(exc).__name__}
        except Exception as exc:  # pragma: no cover - defensive
            return {"error": f"Unexpected error: {exc}", "trace": traceback.format_exc()}

    return wrapper


@mcp.tool()
@_handle_errors
def get_pdf_info(pdf_path: str) -> Dict[str, Any]:
    """Return page count, page sizes/rotations, metadata and encryption state."""
    return pdf_tools.get_pdf_info(pdf_path)


@mcp.tool()
@_handle_errors
def merge_pdfs(pdf_list: List[str], output_path: str) -> Dict[str, Any]:
    """Merge multiple PDFs into a single file, in the given order."""
    return pdf_tools.merge_pdfs(pdf_list, output_path)


@mcp.tool()
@_handle_errors
def split_pdf(
    input_path: str,
    output_path: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
    every_pages: Optional[int] = None,
) -> Dict[str, Any]:
    """Keep a 1-based page range, or one page out of every N pages."""
    return pdf_tools.split_pdf(input_path, output_path, start=start, end=end, every_pages=every_pages)


@mcp.tool()
@_handle_errors
def extract_pages(input_path: str, pages: List[int], output_path: str) -> Dict[str, Any]:
    """Extract specific 1-based pages into a new PDF (out-of-range pages are ignored)."""
    return pdf_tools.extract_pages(input_path, pages, output_path)


@mcp.tool()
@_handle_errors
def remove_pages(input_path: str, pages: List[int], output_path: str) -> Dict[str, Any]:
    """Remove specified 1-based pages from a PDF."""
    return pdf_tools.remove_pages(input_path, pages, output_path)


@mcp.tool()
@_handle_errors
def rotate_pages(
    input_path: str,
    pages: Optional[List[int]],
    degrees: int,
    output_path: str,
) -> Dict[str, Any]:
    """Set rotation (multiple of 90) on the given 1-based pages; pass null for all pages."""
    return pdf_tools.rotate_pages(input_path, pages, degrees, output_path)


@mcp.tool()
@_handle_errors
def organize_pages(input_path: str, page_order: List[int], output_path: str) -> Dict[str, Any]:
    """Rebuild the PDF with pages in the given 1-based order."""
    return pdf_tools.organize_pages(input_path, page_order, output_path)


@mcp.tool()
@_handle_errors
def crop_pdf(
    input_path: str,
    output_path: str,
    top: float = 0,
    right: float = 0,
    bottom: float = 0,
    left: float = 0,
    unit: str = "mm",
) -> Dict[str, Any]:
    """Trim margins (mm, in or pt) from every page."""
    return pdf_tools.crop_pdf(input_path, output_path, top=top, right=right, bottom=bottom, left=left, unit=unit)


@mcp.tool()
@_handle_errors
def add_watermark(
    input_path: str,
    output_path: str,
    text: str,
    position: str = "center",
    opacity: float = 0.3,
    font_size: float = 24,
) -> Dict[str, Any]:
    """Draw watermark text on every page."""
    return pdf_tools.add_watermark(
        input_path, output_path, text, position=position, opacity=opacity, font_size=font_size
    )


@mcp.tool()
@_handle_errors
def add_page_numbers(
    input_path: str,
    output_path: str,
    position: str = "bottom-center",
    font_size: float = 12,
    start_number: int = 1,
    number_format: str = "1",
    include_total: bool = False,
) -> Dict[str, Any]:
    """Number every page (formats: 1, i, I, a, A)."""
    return pdf_tools.add_page_numbers(
        input_path,
        output_path,
        position=position,
        font_size=font_size,
        start_number=start_number,
        number_format=number_format,
        include_total=include_total,
    )


@mcp.tool()
@_handle_errors
def compress_pdf(input_path: str, output_path: str, level: str = "medium") -> Dict[str, Any]:
    """Reduce file size (level: low, medium, high). Reports a warning when little was saved."""
    return pdf_tools.compress_pdf(input_path, output_path, level=level)


@mcp.tool()
@_handle_errors
def protect_pdf(
    input_path: str,
    output_path: str,
    password: str,
    allow_printing: bool = False,
    allow_modifying: bool = False,
    allow_copying: bool = False,
    allow_annotating: bool = False,
) -> Dict[str, Any]:
    """Encrypt a PDF with a password and permission flags."""
    return pdf_tools.protect_pdf(
        input_path,
        output_path,
        password,
        allow_printing=allow_printing,
        allow_modifying=allow_modifying,
        allow_copying=allow_copying,
        allow_annotating=allow_annotating,
    )


@mcp.tool()
@_handle_errors
def unlock_pdf(input_path: str, output_path: str, password: Optional[str] = None) -> Dict[str, Any]:
    """Write an unencrypted copy of a password-protected PDF."""
    return pdf_tools.unlock_pdf(input_path, output_path, password=password)


@mcp.tool()
@_handle_errors
def process_file(
    operation: str,
    input_path: str,
    output_path: str,
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run any single-document operation with the web form's JSON options."""
    return pdf_tools.process_file(operation, input_path, output_path, options)


def main() -> None:
    # stdout carries the stdio transport; logs go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
