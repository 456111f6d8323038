from pathlib import Path

from pypdf import PdfReader, PdfWriter

from pdf_pages import pdf_tools
from pdf_pages.errors import PdfToolError


def _make_pdf(path: Path, pages: int = 1, width: float = 200) -> Path:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=200)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        writer.write(f)
    return path


def test_get_pdf_info(tmp_path: Path):
    src = _make_pdf(tmp_path / "info.pdf", pages=2, width=300)
    info = pdf_tools.get_pdf_info(str(src))
    assert info["page_count"] == 2
    assert info["pages"][0] == {"width": 300.0, "height": 200.0, "rotation": 0}
    assert info["encrypted"] is False
    assert info["size"] == src.stat().st_size


def test_missing_input_file(tmp_path: Path):
    try:
        pdf_tools.get_pdf_info(str(tmp_path / "nope.pdf"))
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "File not found" in str(exc)


def test_merge_extract_rotate(tmp_path: Path):
    src1 = _make_pdf(tmp_path / "a.pdf", pages=2)
    src2 = _make_pdf(tmp_path / "b.pdf", pages=1)
    merged = tmp_path / "merged.pdf"

    merge_result = pdf_tools.merge_pdfs([str(src1), str(src2)], str(merged))
    assert merge_result["merged"] == 2
    assert merge_result["pages"] == 3
    assert Path(merge_result["output_path"]).exists()

    extracted = tmp_path / "extracted.pdf"
    extract_result = pdf_tools.extract_pages(str(merged), [1, 3], str(extracted))
    assert extract_result["extracted"] == 2
    assert Path(extract_result["output_path"]).exists()

    rotated = tmp_path / "rotated.pdf"
    rotate_result = pdf_tools.rotate_pages(str(merged), [1], 90, str(rotated))
    assert rotate_result["rotated"] == 1
    assert [p.rotation for p in PdfReader(str(rotated)).pages] == [90, 0, 0]


def test_merge_requires_inputs(tmp_path: Path):
    try:
        pdf_tools.merge_pdfs([], str(tmp_path / "out.pdf"))
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "No input PDFs" in str(exc)


def test_split_range_and_every(tmp_path: Path):
    src = _make_pdf(tmp_path / "five.pdf", pages=5)
    ranged = pdf_tools.split_pdf(str(src), str(tmp_path / "range.pdf"), start=2, end=4)
    assert ranged["pages"] == 3
    every = pdf_tools.split_pdf(str(src), str(tmp_path / "every.pdf"), every_pages=2)
    assert every["pages"] == 3

    try:
        pdf_tools.split_pdf(str(src), str(tmp_path / "bad.pdf"), start=2)
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "start and end" in str(exc)


def test_remove_pages_refuse_all(tmp_path: Path):
    base = _make_pdf(tmp_path / "one.pdf", pages=1)
    out = tmp_path / "x.pdf"
    try:
        pdf_tools.remove_pages(str(base), [1], str(out))
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "remove all pages" in str(exc)
    assert not out.exists()


def test_rotate_invalid_degrees(tmp_path: Path):
    src = _make_pdf(tmp_path / "c.pdf", pages=1)
    out = tmp_path / "rot_invalid.pdf"
    try:
        pdf_tools.rotate_pages(str(src), [1], 45, str(out))
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "multiple of 90" in str(exc)


def test_extract_out_of_range(tmp_path: Path):
    src = _make_pdf(tmp_path / "d.pdf", pages=1)
    out = tmp_path / "extract.pdf"
    try:
        pdf_tools.extract_pages(str(src), [2], str(out))
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "No valid pages" in str(exc)


def test_organize_crop_and_stamps(tmp_path: Path):
    src = _make_pdf(tmp_path / "three.pdf", pages=3, width=300)

    organized = pdf_tools.organize_pages(str(src), [3, 1], str(tmp_path / "org.pdf"))
    assert organized["pages"] == 2

    cropped = tmp_path / "crop.pdf"
    pdf_tools.crop_pdf(str(src), str(cropped), left=1, right=1, unit="in")
    assert float(PdfReader(str(cropped)).pages[0].mediabox.width) == 156

    marked = tmp_path / "mark.pdf"
    pdf_tools.add_watermark(str(src), str(marked), "SAMPLE", opacity=0.5)
    assert "SAMPLE" in PdfReader(str(marked)).pages[0].extract_text()

    numbered = tmp_path / "num.pdf"
    pdf_tools.add_page_numbers(str(src), str(numbered), start_number=10)
    assert "12" in PdfReader(str(numbered)).pages[2].extract_text()


def test_compress_reports_sizes(tmp_path: Path):
    src = _make_pdf(tmp_path / "c.pdf", pages=2)
    res = pdf_tools.compress_pdf(str(src), str(tmp_path / "small.pdf"), level="high")
    assert res["original_size"] == src.stat().st_size
    assert 1 <= res["attempts"] <= 4
    assert res["warnings"]


def test_protect_unlock_roundtrip(tmp_path: Path):
    src = _make_pdf(tmp_path / "plain.pdf", pages=1)
    enc = tmp_path / "enc.pdf"
    res = pdf_tools.protect_pdf(str(src), str(enc), "userpw", allow_printing=True)
    assert Path(res["output_path"]).exists()

    r = PdfReader(str(enc))
    assert r.is_encrypted is True
    assert r.decrypt("wrong") == 0
    assert r.decrypt("userpw") in (1, 2)
    assert len(r.pages) == 1

    try:
        pdf_tools.unlock_pdf(str(enc), str(tmp_path / "bad.pdf"), password="wrong")
        assert False, "Expected PdfToolError"
    except PdfToolError as exc:
        assert "password" in str(exc).lower()

    dec = tmp_path / "dec.pdf"
    pdf_tools.unlock_pdf(str(enc), str(dec), password="userpw")
    assert PdfReader(str(dec)).is_encrypted is False


def test_process_file_uses_browser_options(tmp_path: Path):
    src = _make_pdf(tmp_path / "p.pdf", pages=4)
    res = pdf_tools.process_file("remove-pages", str(src), str(tmp_path / "out.pdf"), {"pagesToRemove": [1, 4]})
    assert res["pages"] == 2
    assert res["operation"] == "remove-pages"


def test_mcp_layer_can_call_all_tools(tmp_path: Path):
    """
    Smoke test the MCP layer in-process by calling each tool through
    FastMCP.call_tool and validating the results.
    """
    import asyncio

    from pdf_pages import server

    blank_a = _make_pdf(tmp_path / "mcp_a.pdf", pages=3)
    blank_b = _make_pdf(tmp_path / "mcp_b.pdf", pages=1)

    async def call(name: str, args: dict):
        _content, meta = await server.mcp.call_tool(name, args)
        assert isinstance(meta, dict)
        # Dict returns come back wrapped as {"result": ...} by the structured output layer.
        result = meta["result"] if "result" in meta else meta
        assert isinstance(result, dict)
        assert "error" not in result, result.get("error")
        return result

    res = asyncio.run(call("get_pdf_info", {"pdf_path": str(blank_a)}))
    assert res["page_count"] == 3

    merged = tmp_path / "mcp_merged.pdf"
    res = asyncio.run(call("merge_pdfs", {"pdf_list": [str(blank_a), str(blank_b)], "output_path": str(merged)}))
    assert res["pages"] == 4

    calls = [
        ("split_pdf", {"input_path": str(merged), "output_path": str(tmp_path / "s.pdf"), "start": 1, "end": 2}),
        ("extract_pages", {"input_path": str(merged), "pages": [4], "output_path": str(tmp_path / "e.pdf")}),
        ("remove_pages", {"input_path": str(merged), "pages": [1], "output_path": str(tmp_path / "r.pdf")}),
        ("rotate_pages", {"input_path": str(merged), "pages": None, "degrees": 270, "output_path": str(tmp_path / "rot.pdf")}),
        ("organize_pages", {"input_path": str(merged), "page_order": [2, 1], "output_path": str(tmp_path / "o.pdf")}),
        ("crop_pdf", {"input_path": str(merged), "output_path": str(tmp_path / "c.pdf"), "top": 5}),
        ("add_watermark", {"input_path": str(merged), "output_path": str(tmp_path / "w.pdf"), "text": "X"}),
        ("add_page_numbers", {"input_path": str(merged), "output_path": str(tmp_path / "n.pdf")}),
        ("compress_pdf", {"input_path": str(merged), "output_path": str(tmp_path / "z.pdf")}),
        ("protect_pdf", {"input_path": str(merged), "output_path": str(tmp_path / "p.pdf"), "password": "pw"}),
        ("unlock_pdf", {"input_path": str(tmp_path / "p.pdf"), "output_path": str(tmp_path / "u.pdf"), "password": "pw"}),
        (
            "process_file",
            {
                "operation": "split",
                "input_path": str(merged),
                "output_path": str(tmp_path / "pf.pdf"),
                "options": {"everyPages": 2},
            },
        ),
    ]
    for name, args in calls:
        res = asyncio.run(call(name, args))
        assert Path(res["output_path"]).exists(), name

    assert [p.rotation for p in PdfReader(str(tmp_path / "rot.pdf")).pages] == [270] * 4
    assert PdfReader(str(tmp_path / "u.pdf")).is_encrypted is False


def test_mcp_layer_reports_errors(tmp_path: Path):
    from pdf_pages import server

    src = _make_pdf(tmp_path / "one.pdf", pages=1)
    res = server.remove_pages(str(src), [1], str(tmp_path / "out.pdf"))
    assert res["error"] == "Refusing to remove all pages"
    assert res["error_type"] == "AllPagesRemovedError"

    res = server.get_pdf_info(str(tmp_path / "missing.pdf"))
    assert "File not found" in res["error"]
