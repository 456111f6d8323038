import io

import pytest
from pypdf import PdfReader, PdfWriter
from pypdf.generic import DecodedStreamObject, NameObject

from pdf_pages import transforms
from pdf_pages.options import CropOptions, PageNumberOptions, WatermarkOptions


def _blank_page(width: float = 200, height: float = 200):
    writer = PdfWriter()
    writer.add_blank_page(width=width, height=height)
    return writer, writer.pages[0]


def _page_text(writer: PdfWriter) -> str:
    buf = io.BytesIO()
    writer.write(buf)
    return PdfReader(io.BytesIO(buf.getvalue())).pages[0].extract_text()


def test_rotate_sets_absolute_angle():
    _writer, page = _blank_page()
    transforms.rotate(page, 90)
    transforms.rotate(page, 90)
    assert page.rotation == 90

    transforms.rotate(page, 0)
    assert page.rotation == 0


def test_crop_shrinks_media_box():
    _writer, page = _blank_page(200, 100)
    assert transforms.crop(page, CropOptions(top=10, right=20, bottom=5, left=15, unit="pt")) is True
    assert float(page.mediabox.width) == pytest.approx(165)
    assert float(page.mediabox.height) == pytest.approx(85)
    assert float(page.mediabox.left) == 0


def test_crop_that_would_empty_the_page_is_skipped():
    _writer, page = _blank_page(200, 100)
    # Exactly the full height: zero remains, so nothing changes.
    assert transforms.crop(page, CropOptions(top=50, bottom=50, unit="pt")) is False
    assert float(page.mediabox.height) == 100

    assert transforms.crop(page, CropOptions(top=49.5, bottom=50, unit="pt")) is True
    assert float(page.mediabox.height) == pytest.approx(0.5)


def test_crop_converts_millimetres():
    _writer, page = _blank_page(200, 200)
    transforms.crop(page, CropOptions(left=10, unit="mm"))
    assert float(page.mediabox.width) == pytest.approx(200 - 28.34645669, abs=1e-3)


def test_watermark_draws_text():
    writer, page = _blank_page(300, 300)
    transforms.watermark(page, WatermarkOptions(text="CONFIDENTIAL"))
    assert "CONFIDENTIAL" in _page_text(writer)


def test_page_number_with_total():
    writer, page = _blank_page(300, 300)
    options = PageNumberOptions(position="top-right", start_number=3, include_total=True)
    transforms.page_number(page, 1, options, total=4)
    assert "4 / 6" in _page_text(writer)


@pytest.mark.parametrize(
    "number,fmt,expected",
    [
        (7, "1", "7"),
        (4, "i", "iv"),
        (1994, "I", "MCMXCIV"),
        (1, "a", "a"),
        (28, "A", "BB"),
        (0, "I", "0"),
    ],
)
def test_format_number(number, fmt, expected):
    assert transforms.format_number(number, fmt) == expected


def _drawn_page(width: float = 200, height: float = 100):
    writer = PdfWriter()
    page = writer.add_blank_page(width=width, height=height)
    stream = DecodedStreamObject()
    stream.set_data(b"0 0 m 50 50 l S\n")
    page[NameObject("/Contents")] = writer._add_object(stream)  # type: ignore[attr-defined]
    return writer, page


def test_crop_translates_content_by_left_and_bottom():
    _writer, page = _drawn_page()
    transforms.crop(page, CropOptions(top=10, right=20, bottom=5, left=15, unit="pt"))

    content = page.get_contents()
    assert content is not None
    matrices = [[float(v) for v in operands] for operands, operator in content.operations if operator == b"cm"]
    assert matrices == [[1, 0, 0, 1, -15, -5]]


def _record_stamps(monkeypatch):
    stamps = []

    def record(page, text, x, y, font_size, opacity):
        stamps.append((text, x, y))

    monkeypatch.setattr(transforms, "_stamp", record)
    return stamps


@pytest.mark.parametrize(
    "position,expected",
    [
        ("center", (100.0, 100.0)),
        ("top-left", (50.0, 150.0)),
        ("bottom-right", (50.0, 150.0)),
        ("anywhere", (50.0, 150.0)),
    ],
)
def test_watermark_anchor(monkeypatch, position, expected):
    stamps = _record_stamps(monkeypatch)
    _writer, page = _blank_page(300, 200)
    transforms.watermark(page, WatermarkOptions(text="W", position=position))
    assert stamps == [("W", *expected)]


def test_page_number_anchors():
    assert transforms._anchor("top-left", 300, 200) == (30.0, 170.0)
    assert transforms._anchor("top-right", 300, 200) == (270.0, 170.0)
    assert transforms._anchor("bottom-center", 300, 200) == (140.0, 30.0)
    assert transforms._anchor("bogus", 300, 200) == (140.0, 30.0)


def test_page_number_unknown_position_lands_bottom_center(monkeypatch):
    stamps = _record_stamps(monkeypatch)
    _writer, page = _blank_page(300, 200)
    transforms.page_number(page, 0, PageNumberOptions(position="middle"))
    assert stamps == [("1", 140.0, 30.0)]
