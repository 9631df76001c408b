import csv
from datetime import date, datetime, timezone
from io import StringIO

import pytest

from functions.report_api.aggregator import build_date_range, build_full_account, build_monthly
from functions.report_api.content import build_document
from functions.report_api.render_csv import CsvRenderer, document_rows, sanitize_csv_value
from tests.fakes.sources import ListSource, d, rec

GENERATED = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def _doc(data):
    return build_document(data, generated_at=GENERATED, currency_symbol="₹", tz=timezone.utc)


def _parse(content: bytes):
    return list(csv.reader(StringIO(content.decode("utf-8"))))


@pytest.mark.parametrize(
    "value, expected",
    [
        ("=SUM(A1:A2)", "\t=SUM(A1:A2)"),
        ("+1", "\t+1"),
        ("-cmd", "\t-cmd"),
        ("@import", "\t@import"),
        ("Groceries", "Groceries"),
        ("", ""),
    ],
)
def test_sanitize_csv_value(value, expected):
    assert sanitize_csv_value(value) == expected


def test_monthly_rows_in_output_order():
    source = ListSource([rec("expense", 1200.5, d(2026, 2, 5), "Food"), rec("income", 5000, d(2026, 2, 1))])
    rows = _parse(CsvRenderer().render(_doc(build_monthly(source, "u1", 2, 2026))))

    assert rows[0] == ["Monthly Financial Report", "February 2026"]
    assert rows[1] == ["Generated At", "2026-03-01T09:30:00+00:00"]
    assert rows[2] == []
    assert rows[3] == ["Summary"]
    assert rows[4:8] == [
        ["Monthly Income", "5000.00"],
        ["Monthly Expense", "1200.50"],
        ["Savings", "3799.50", "Positive"],
        ["Savings Ratio", "76.0"],
    ]
    assert rows[8] == []
    assert rows[9] == ["Income vs Expense Breakdown"]
    assert rows[10] == ["Metric", "Amount", "Percentage"]
    assert rows[11] == ["Monthly Income", "5000.00", "100"]

    category_title = rows.index(["Category-wise Expense Analysis"])
    assert rows[category_title + 2] == ["Food", "1200.50", "100.0"]


def test_empty_table_writes_placeholder_row():
    rows = document_rows(_doc(build_date_range(ListSource(), "u1", date(2026, 1, 1), date(2026, 1, 31))))
    assert rows[-2:] == [["Transaction Details (0 Total)"], ["No transactions found"]]


def test_formula_like_text_is_neutralised():
    source = ListSource([rec("expense", 5, d(2026, 1, 2), "=HYPERLINK(\"x\")")])
    rows = _parse(CsvRenderer().render(_doc(build_date_range(source, "u1", date(2026, 1, 1), date(2026, 1, 31)))))
    (row,) = [r for r in rows if r and r[0] == "2026-01-02"]
    assert row[2].startswith("\t=")
    # only the category text is prefixed
    assert all(not cell.startswith("\t") for cell in row if cell != row[2])


def test_full_account_carries_account_holder_row():
    rows = document_rows(_doc(build_full_account(ListSource(), "u1")))
    assert rows[2] == ["Account Holder", "N/A"]
    assert rows[4] == ["Summary"]


def test_output_is_deterministic():
    data = build_monthly(ListSource([rec("income", 10, d(2026, 2, 1))]), "u1", 2, 2026)
    renderer = CsvRenderer()
    assert renderer.render(_doc(data)) == renderer.render(_doc(data))
    assert renderer.content_type == "text/csv; charset=utf-8"
