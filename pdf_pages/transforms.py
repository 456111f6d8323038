"""Page-local transforms applied to copied pages before serialization.

Text overlays are drawn with reportlab onto a one-page PDF the size of the
target page, then merged over the page content with pypdf.
"""
from __future__ import annotations

import functools
import io
import logging
from typing import Dict, Optional, Tuple

from pypdf import PageObject, PdfReader, Transformation
from pypdf.generic import NameObject, NumberObject, RectangleObject
from reportlab.pdfgen import canvas

from .document import page_origin, page_size
from .options import CropOptions, PageNumberOptions, WatermarkOptions

logger = logging.getLogger(__name__)

OVERLAY_FONT = "Helvetica"

# Boxes reset to the new media box after a crop so viewers do not clip to stale bounds.
_PAGE_BOXES = ("/CropBox", "/BleedBox", "/TrimBox", "/ArtBox")

_ROMAN = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)


def rotate(page: PageObject, angle: int) -> None:
    """Set the absolute page rotation. The angle is stored as given."""
    page[NameObject("/Rotate")] = NumberObject(angle)


def scale(page: PageObject, factor: float) -> None:
    page.scale_by(factor)


def crop(page: PageObject, options: CropOptions) -> bool:
    """Remove margins from ``page``.

    Returns False and leaves the page untouched when the margins would leave
    no positive width or height.
    """
    top, right, bottom, left = options.in_points()
    width, height = page_size(page)
    new_width = width - left - right
    new_height = height - top - bottom
    if new_width <= 0 or new_height <= 0:
        logger.debug(
            "Skipping crop: margins exceed page size %.1fx%.1f (result %.1fx%.1f)",
            width,
            height,
            new_width,
            new_height,
        )
        return False

    x0, y0 = page_origin(page)
    bounds = (x0, y0, x0 + new_width, y0 + new_height)
    page.mediabox = RectangleObject(bounds)
    for name in _PAGE_BOXES:
        if name in page:
            page[NameObject(name)] = RectangleObject(bounds)
    page.add_transformation(Transformation().translate(-left, -bottom))
    return True


def watermark(page: PageObject, options: WatermarkOptions) -> None:
    width, height = page_size(page)
    if options.position == "center":
        x, y = width / 2 - 50, height / 2
    else:
        x, y = 50.0, height - 50
    _stamp(page, options.text, x, y, options.font_size, options.opacity)


def page_number(
    page: PageObject,
    index: int,
    options: PageNumberOptions,
    total: Optional[int] = None,
) -> None:
    """Stamp the number for the ``index``-th page of the output (zero-based)."""
    label = format_number(options.start_number + index, options.format)
    if options.include_total and total is not None:
        label = f"{label} / {format_number(options.start_number + total - 1, options.format)}"
    width, height = page_size(page)
    x, y = _anchor(options.position, width, height)
    _stamp(page, label, x, y, options.font_size, 1.0)


def format_number(number: int, number_format: str = "1") -> str:
    if number_format == "1" or number <= 0:
        return str(number)
    if number_format in ("i", "I"):
        roman = _to_roman(number)
        return roman.lower() if number_format == "i" else roman
    # a..z, then aa..zz, like PDF page labels.
    letter = chr(ord("a") + (number - 1) % 26) * ((number - 1) // 26 + 1)
    return letter.upper() if number_format == "A" else letter


def _to_roman(number: int) -> str:
    parts = []
    for value, symbol in _ROMAN:
        count, number = divmod(number, value)
        parts.append(symbol * count)
    return "".join(parts)


def _anchor(position: str, width: float, height: float) -> Tuple[float, float]:
    anchors: Dict[str, Tuple[float, float]] = {
        "top-left": (30.0, height - 30),
        "top-center": (width / 2 - 10, height - 30),
        "top-right": (width - 30, height - 30),
        "bottom-left": (30.0, 30.0),
        "bottom-center": (width / 2 - 10, 30.0),
        "bottom-right": (width - 30, 30.0),
    }
    return anchors.get(position, anchors["bottom-center"])


def _stamp(page: PageObject, text: str, x: float, y: float, font_size: float, opacity: float) -> None:
    width, height = page_size(page)
    overlay = PdfReader(io.BytesIO(_overlay_bytes(width, height, text, x, y, font_size, opacity))).pages[0]
    x0, y0 = page_origin(page)
    page.merge_translated_page(overlay, x0, y0)


@functools.lru_cache(maxsize=64)
def _overlay_bytes(
    width: float,
    height: float,
    text: str,
    x: float,
    y: float,
    font_size: float,
    opacity: float,
) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height))
    c.setFont(OVERLAY_FONT, font_size)
    c.setFillColorRGB(0, 0, 0)
    if opacity < 1.0:
        c.setFillAlpha(opacity)
    c.drawString(x, y, text)
    c.showPage()
    c.save()
    return buffer.getvalue()
