import argparse
import tempfile
from pathlib import Path
from typing import Optional

from pypdf import PdfReader, PdfWriter

from pdf_pages import pdf_tools


def _make_blank_pdf(path: Path, pages: int, width: float = 300, height: float = 200) -> Path:
    w = PdfWriter()
    for _ in range(pages):
        w.add_blank_page(width=width, height=height)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        w.write(f)
    return path


def run_smoke(inputs_dir: Optional[Path], out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)

    if inputs_dir is None:
        inputs_dir = out_dir / "inputs"
        blank = _make_blank_pdf(inputs_dir / "blank.pdf", pages=5)
        wide = _make_blank_pdf(inputs_dir / "wide.pdf", pages=2, width=500)
    else:
        blank = inputs_dir / "blank.pdf"
        wide = inputs_dir / "wide.pdf"

    info = pdf_tools.get_pdf_info(str(blank))
    assert info["page_count"] == 5, info

    # Merge keeps input order.
    merged = out_dir / "merged.pdf"
    pdf_tools.merge_pdfs([str(blank), str(wide)], str(merged))
    mr = PdfReader(str(merged))
    assert len(mr.pages) == 7
    assert float(mr.pages[5].mediabox.width) == float(PdfReader(str(wide)).pages[0].mediabox.width)

    # Selection operations.
    split = out_dir / "split.pdf"
    pdf_tools.split_pdf(str(blank), str(split), start=2, end=4)
    assert len(PdfReader(str(split)).pages) == 3

    extracted = out_dir / "extracted.pdf"
    pdf_tools.extract_pages(str(blank), [5, 1], str(extracted))
    assert len(PdfReader(str(extracted)).pages) == 2

    removed = out_dir / "removed.pdf"
    pdf_tools.remove_pages(str(blank), [1, 2], str(removed))
    assert len(PdfReader(str(removed)).pages) == 3

    organized = out_dir / "organized.pdf"
    pdf_tools.organize_pages(str(blank), [3, 2, 1], str(organized))
    assert len(PdfReader(str(organized)).pages) == 3

    # Page transforms.
    rotated = out_dir / "rotated.pdf"
    pdf_tools.rotate_pages(str(blank), [1], 90, str(rotated))
    rr = PdfReader(str(rotated))
    assert rr.pages[0].rotation == 90 and rr.pages[1].rotation == 0

    cropped = out_dir / "cropped.pdf"
    pdf_tools.crop_pdf(str(blank), str(cropped), top=10, right=10, bottom=10, left=10, unit="pt")
    assert float(PdfReader(str(cropped)).pages[0].mediabox.width) == 280

    watermarked = out_dir / "watermarked.pdf"
    pdf_tools.add_watermark(str(blank), str(watermarked), "DRAFT")
    numbered = out_dir / "numbered.pdf"
    pdf_tools.add_page_numbers(str(blank), str(numbered), include_total=True)
    assert len(PdfReader(str(numbered)).pages) == 5

    compressed = out_dir / "compressed.pdf"
    res = pdf_tools.compress_pdf(str(blank), str(compressed))
    assert res["attempts"] >= 1

    # Protect then unlock.
    protected = out_dir / "protected.pdf"
    pdf_tools.protect_pdf(str(blank), str(protected), "pw", allow_printing=True)
    pr = PdfReader(str(protected))
    assert pr.is_encrypted is True
    assert pr.decrypt("pw") in (1, 2)

    unlocked = out_dir / "unlocked.pdf"
    pdf_tools.unlock_pdf(str(protected), str(unlocked), password="pw")
    assert PdfReader(str(unlocked)).is_encrypted is False


def main() -> int:
    ap = argparse.ArgumentParser(description="Smoke test for pdf-pages tools")
    ap.add_argument("--inputs-dir", type=Path, default=None, help="Optional dir containing blank.pdf and wide.pdf")
    ap.add_argument("--out-dir", type=Path, default=None, help="Output directory (defaults to a temp dir)")
    args = ap.parse_args()

    if args.out_dir is None:
        with tempfile.TemporaryDirectory(prefix="pdf-pages-smoke-") as td:
            out = Path(td)
            run_smoke(args.inputs_dir, out)
            print(f"OK: smoke test passed. outputs at {out}")
    else:
        run_smoke(args.inputs_dir, args.out_dir)
        print(f"OK: smoke test passed. outputs at {args.out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
