from datetime import date, datetime, timedelta, timezone

import pytest

from functions.report_api.aggregator import build_date_range, build_full_account, build_monthly
from functions.report_api.config import get_settings
from functions.report_api.content import build_document
from functions.report_api.render_pdf import (
    BOTTOM_LIMIT,
    SECTION_TITLE_HEIGHT,
    TABLE_HEADER_HEIGHT,
    Fonts,
    LayoutContext,
    PdfRenderer,
    draw_table,
    layout_document,
    load_fonts,
)
from tests.fakes.canvas import RecordingCanvas
from tests.fakes.sources import ListSource, d, rec

GENERATED = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)
TX_HEADERS = ["Date", "Type", "Category", "Amount"]


def _doc(data, symbol="₹"):
    return build_document(data, generated_at=GENERATED, currency_symbol=symbol, tz=timezone.utc)


def _long_date_range(n=60):
    start = d(2026, 1, 1)
    records = [rec("expense" if i % 3 else "income", 10 + i, start + timedelta(hours=i), f"Cat{i % 4}") for i in range(n)]
    records.reverse()
    return build_date_range(ListSource(records), "u1", date(2026, 1, 1), date(2026, 1, 31))


def test_long_table_paginates_and_repeats_header_bar_and_table_header():
    canvas = RecordingCanvas()
    ctx = layout_document(canvas, _doc(_long_date_range(60)))
    pages = canvas.finished_pages()

    assert ctx.page_number == len(pages) >= 3
    for idx in range(len(pages)):
        texts = canvas.page_texts(idx)
        assert texts[0] == "MONEY MANAGER REPORT"
        assert texts[-2] == "Generated on: October 17, 2026"
        assert texts[-1] == f"Money Manager - Page {idx + 1}"
        # each page carries the table header followed by at least one data row
        head = texts.index("Date")
        assert texts[head : head + 4] == TX_HEADERS
        assert texts[head + 4].startswith("2026-01-")

    # every data row is drawn and none is repeated
    rows = [t for idx in range(len(pages)) for t in canvas.page_texts(idx) if len(t) == 10 and t.startswith("2026-01-")]
    assert len(rows) == 60


def test_title_block_and_cards_only_on_first_page():
    canvas = RecordingCanvas()
    layout_document(canvas, _doc(_long_date_range(60)))
    first, second = canvas.page_texts(0), canvas.page_texts(1)
    assert "Transaction Report" in first
    assert "2026-01-01 to 2026-01-31" in first
    assert "Total Transactions" in first and "60" in first
    assert "Transaction Report" not in second
    assert "Total Transactions" not in second


def test_nothing_is_drawn_below_the_printable_area():
    canvas = RecordingCanvas()
    layout_document(canvas, _doc(_long_date_range(90)))
    for page in canvas.finished_pages():
        table_rects = [e for e in page if e[0] == "rect" and e[3] > 400 and e[4] in (25, 30)]
        assert table_rects
        for _, x, y, w, h in table_rects:
            assert y >= BOTTOM_LIMIT


def test_table_starts_on_next_page_when_its_first_row_would_not_fit():
    canvas = RecordingCanvas()
    doc = _doc(_long_date_range(3))
    table = doc.tables[0]
    ctx = LayoutContext(canvas=canvas, document=doc, fonts=Fonts(), page_width=612, page_height=792)
    # title and header row fit, the first data row does not
    ctx.y = ctx.bottom - (SECTION_TITLE_HEIGHT + TABLE_HEADER_HEIGHT + 10)
    draw_table(ctx, table)

    assert ctx.page_number == 2
    first_page = [e[3] for e in canvas.pages[0] if e[0] == "text"]
    second_page = [e[3] for e in canvas.pages[1] if e[0] == "text"]
    assert table.title not in first_page
    assert "Date" not in first_page
    assert second_page[0] == "MONEY MANAGER REPORT"
    assert second_page[1:6] == [table.title] + TX_HEADERS


def test_empty_table_draws_placeholder():
    canvas = RecordingCanvas()
    layout_document(canvas, _doc(build_monthly(ListSource(), "u1", 2, 2026)))
    texts = canvas.page_texts(0)
    assert "Category-wise Expense Analysis" in texts
    assert "No expense data available" in texts
    assert len(canvas.finished_pages()) == 1


def test_card_values_shrink_instead_of_being_cut():
    data = build_monthly(ListSource([rec("income", 123456789.25, d(2026, 2, 1))]), "u1", 2, 2026)
    canvas = RecordingCanvas()
    layout_document(canvas, _doc(data, symbol="$"))
    drawn = [e for e in canvas.finished_pages()[0] if e[0] == "text" and e[3] == "$123,456,789.25"]
    card_values = [font for *_, font in drawn if font[0] == "Helvetica-Bold"]
    # Monthly Income and Savings cards both carry this value
    assert len(card_values) == 2
    assert all(size < 18 for _, size in card_values)


def test_full_account_shows_account_holder():
    data = build_full_account(ListSource(), "u1")
    canvas = RecordingCanvas()
    layout_document(canvas, _doc(data))
    assert "Account Holder: N/A" in canvas.page_texts(0)


def test_renderer_produces_a_pdf():
    pdf = PdfRenderer().render(_doc(_long_date_range(5)))
    assert pdf.startswith(b"%PDF-")
    assert b"%%EOF" in pdf[-16:]


def test_renderer_is_deterministic_for_identical_input():
    renderer = PdfRenderer()
    first = renderer.render(_doc(_long_date_range(30)))
    second = renderer.render(_doc(_long_date_range(30)))
    assert first == second


def test_uncompressed_output_contains_labels(monkeypatch):
    monkeypatch.setenv("REPORT_PDF_COMPRESS", "0")
    get_settings.cache_clear()
    pdf = PdfRenderer().render(_doc(build_monthly(ListSource([rec("income", 10, d(2026, 2, 1))]), "u1", 2, 2026), "$"))
    for label in (b"Monthly Income", b"Savings Ratio", b"Income vs Expense Breakdown", b"$10.00"):
        assert label in pdf


def test_missing_font_file_falls_back_to_helvetica(tmp_path):
    assert load_fonts(str(tmp_path / "missing.ttf")) == Fonts()


@pytest.mark.parametrize("n", [0, 1, 26])
def test_page_count_grows_with_rows(n):
    canvas = RecordingCanvas()
    ctx = layout_document(canvas, _doc(_long_date_range(n)))
    assert ctx.page_number == (1 if n < 15 else 2)
