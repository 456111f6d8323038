from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from . import assembler, compress as compression, merge as merging
from .assembler import AssemblyResult
from .document import load, page_rotation, page_size
from .errors import PdfToolError
from .options import (
    CROP,
    EXTRACT_PAGES,
    ORGANIZE,
    PAGE_NUMBERS,
    REMOVE_PAGES,
    ROTATE,
    SPLIT,
    WATERMARK,
)


def _ensure_file(path: str) -> Path:
    resolved = Path(path).expanduser()
    if not resolved.is_absolute():
        resolved = resolved.resolve()
    if not resolved.exists():
        raise PdfToolError(f"File not found: {resolved}")
    if not resolved.is_file():
        raise PdfToolError(f"Not a file: {resolved}")
    return resolved


def _prepare_output(path: str) -> Path:
    resolved = Path(path).expanduser()
    if not resolved.is_absolute():
        resolved = resolved.resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def _write_result(result: AssemblyResult, output_path: str) -> Dict[str, Any]:
    dst = _prepare_output(output_path)
    dst.write_bytes(result.data)
    summary: Dict[str, Any] = {
        "output_path": str(dst),
        "operation": result.operation,
        "pages": result.page_count,
        "size": result.size,
    }
    if result.warnings:
        summary["warnings"] = list(result.warnings)
    return summary


def _run(operation: str, input_path: str, output_path: str, options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    src = _ensure_file(input_path)
    result = assembler.process(operation, src.read_bytes(), options)
    return _write_result(result, output_path)


def process_file(
    operation: str,
    input_path: str,
    output_path: str,
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run any single-document operation with browser-shaped options."""
    return _run(operation, input_path, output_path, options)


def get_pdf_info(pdf_path: str) -> Dict[str, Any]:
    path = _ensure_file(pdf_path)
    document = load(path.read_bytes())
    pages = []
    for page in document.pages:
        width, height = page_size(page)
        pages.append({"width": width, "height": height, "rotation": page_rotation(page)})
    return {
        "page_count": document.page_count,
        "pages": pages,
        "metadata": document.metadata,
        "encrypted": document.is_encrypted,
        "size": path.stat().st_size,
    }


def merge_pdfs(pdf_list: Iterable[str], output_path: str) -> Dict[str, Any]:
    paths: List[Path] = [_ensure_file(p) for p in pdf_list]
    if not paths:
        raise PdfToolError("No input PDFs provided for merge")

    inputs = [merging.InputFile(name=p.name, data=p.read_bytes()) for p in paths]
    result = merging.merge(inputs)
    summary = _write_result(result, output_path)
    summary["merged"] = len(paths)
    return summary


def split_pdf(
    input_path: str,
    output_path: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
    every_pages: Optional[int] = None,
) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    if start is not None or end is not None:
        if start is None or end is None:
            raise PdfToolError("Both start and end are required for a page range")
        options["pageRange"] = {"start": start, "end": end}
    elif every_pages is not None:
        options["everyPages"] = every_pages
    return _run(SPLIT, input_path, output_path, options)


def extract_pages(input_path: str, pages: List[int], output_path: str) -> Dict[str, Any]:
    summary = _run(EXTRACT_PAGES, input_path, output_path, {"pages": pages})
    summary["extracted"] = summary["pages"]
    return summary


def remove_pages(input_path: str, pages: List[int], output_path: str) -> Dict[str, Any]:
    summary = _run(REMOVE_PAGES, input_path, output_path, {"pagesToRemove": pages})
    summary["total_pages"] = summary["pages"]
    return summary


def rotate_pages(
    input_path: str,
    pages: Optional[List[int]],
    degrees: int,
    output_path: str,
) -> Dict[str, Any]:
    """Rotate the listed 1-based pages (all pages when ``pages`` is None)."""
    summary = _run(ROTATE, input_path, output_path, {"angle": degrees, "pages": pages})
    summary["degrees"] = degrees
    summary["rotated"] = summary["pages"] if pages is None else len({p for p in pages if 1 <= p <= summary["pages"]})
    return summary


def organize_pages(input_path: str, page_order: List[int], output_path: str) -> Dict[str, Any]:
    return _run(ORGANIZE, input_path, output_path, {"pageOrder": page_order})


def crop_pdf(
    input_path: str,
    output_path: str,
    top: float = 0,
    right: float = 0,
    bottom: float = 0,
    left: float = 0,
    unit: str = "mm",
) -> Dict[str, Any]:
    crop = {"top": top, "right": right, "bottom": bottom, "left": left, "unit": unit}
    return _run(CROP, input_path, output_path, {"crop": crop})


def add_watermark(
    input_path: str,
    output_path: str,
    text: str,
    position: str = "center",
    opacity: float = 0.3,
    font_size: float = 24,
) -> Dict[str, Any]:
    options = {"text": text, "position": position, "opacity": opacity, "fontSize": font_size}
    return _run(WATERMARK, input_path, output_path, options)


def add_page_numbers(
    input_path: str,
    output_path: str,
    position: str = "bottom-center",
    font_size: float = 12,
    start_number: int = 1,
    number_format: str = "1",
    include_total: bool = False,
) -> Dict[str, Any]:
    options = {
        "position": position,
        "fontSize": font_size,
        "startNumber": start_number,
        "format": number_format,
        "includeTotalPages": include_total,
    }
    return _run(PAGE_NUMBERS, input_path, output_path, options)


def compress_pdf(input_path: str, output_path: str, level: str = "medium") -> Dict[str, Any]:
    src = _ensure_file(input_path)
    result = compression.compress(src.read_bytes(), {"compressionLevel": level})
    summary = _write_result(result, output_path)
    summary["original_size"] = src.stat().st_size
    summary["attempts"] = result.attempts
    return summary


def protect_pdf(
    input_path: str,
    output_path: str,
    password: str,
    allow_printing: bool = False,
    allow_modifying: bool = False,
    allow_copying: bool = False,
    allow_annotating: bool = False,
) -> Dict[str, Any]:
    src = _ensure_file(input_path)
    options = {
        "password": password,
        "permissions": {
            "printing": allow_printing,
            "modifying": allow_modifying,
            "copying": allow_copying,
            "annotating": allow_annotating,
        },
    }
    result = assembler.protect(src.read_bytes(), options)
    return _write_result(result, output_path)


def unlock_pdf(input_path: str, output_path: str, password: Optional[str] = None) -> Dict[str, Any]:
    src = _ensure_file(input_path)
    result = assembler.unlock(src.read_bytes(), {"password": password})
    return _write_result(result, output_path)
