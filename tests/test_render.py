from datetime import date, datetime, timezone
from io import BytesIO

import pytest
from openpyxl import load_workbook

from functions.report_api.aggregator import build_budget, build_date_range, build_full_account, build_monthly
from functions.report_api.config import get_settings
from functions.report_api.models import ReportFormat
from functions.report_api.render import RENDERERS, get_renderer, render_report, report_filename
from functions.report_api.render_csv import CsvRenderer
from functions.report_api.render_pdf import PdfRenderer
from functions.report_api.render_xlsx import XlsxRenderer
from tests.fakes.sources import ListSource, d, rec


def test_one_renderer_per_format():
    assert set(RENDERERS) == set(ReportFormat)
    assert isinstance(get_renderer(ReportFormat.PDF), PdfRenderer)
    assert isinstance(get_renderer("excel"), XlsxRenderer)
    assert isinstance(get_renderer(ReportFormat.CSV), CsvRenderer)


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError, match="unknown report format"):
        get_renderer("docx")


@pytest.mark.parametrize(
    "data, fmt, expected",
    [
        (lambda: build_monthly(ListSource(), "u1", 2, 2026), ReportFormat.PDF, "Monthly_Report_February_2026.pdf"),
        (
            lambda: build_date_range(ListSource(), "u1", date(2026, 1, 1), date(2026, 1, 31)),
            ReportFormat.EXCEL,
            "DateRange_Report_2026-01-01_to_2026-01-31.xlsx",
        ),
        (lambda: build_budget(ListSource(), "u1", 12, 2025), ReportFormat.CSV, "Budget_Report_December_2025.csv"),
        (lambda: build_full_account(ListSource(), "u1"), ReportFormat.PDF, "Full_Account_Report.pdf"),
        (
            lambda: build_full_account(ListSource(), "u1", date(2026, 1, 1)),
            ReportFormat.CSV,
            "Full_Account_Report.csv",
        ),
        (
            lambda: build_full_account(ListSource(), "u1", date(2026, 1, 1), date(2026, 3, 31)),
            ReportFormat.EXCEL,
            "Full_Account_Report_2026-01-01_to_2026-03-31.xlsx",
        ),
    ],
)
def test_filenames(data, fmt, expected):
    assert report_filename(data(), fmt) == expected


def test_render_report_returns_bytes_name_and_content_type():
    data = build_monthly(ListSource([rec("income", 10, d(2026, 2, 1))]), "u1", 2, 2026)
    rendered = render_report(data, ReportFormat.CSV, generated_at=datetime(2026, 3, 1, tzinfo=timezone.utc))
    assert rendered.filename == "Monthly_Report_February_2026.csv"
    assert rendered.content_type == "text/csv; charset=utf-8"
    assert rendered.content.splitlines()[1] == b"Generated At,2026-03-01T00:00:00+00:00"


def test_full_account_render_uses_the_aggregation_timestamp():
    now = datetime(2026, 4, 2, 7, 15, tzinfo=timezone.utc)
    data = build_full_account(ListSource(), "u1", now=now)
    rendered = render_report(data, ReportFormat.CSV)
    assert rendered.content.splitlines()[1] == b"Generated At,2026-04-02T07:15:00+00:00"


def test_render_report_uses_configured_currency_and_brand(monkeypatch):
    monkeypatch.setenv("REPORT_CURRENCY_SYMBOL", "$")
    monkeypatch.setenv("REPORT_BRAND_NAME", "Acme Budget")
    get_settings.cache_clear()
    data = build_monthly(ListSource([rec("income", 10, d(2026, 2, 1))]), "u1", 2, 2026)
    rendered = render_report(data, ReportFormat.EXCEL)

    ws = load_workbook(BytesIO(rendered.content))["Report"]
    assert ws["A1"].value == "Acme Budget Report"
    income = next(row[1] for row in ws.iter_rows() if row[0].value == "Monthly Income")
    assert income.number_format == '"$"#,##0.00'
