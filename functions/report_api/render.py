from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Dict, Optional, Protocol

from .aggregator import (
    BudgetReportData,
    DateRangeReportData,
    FullAccountReportData,
    MonthlyReportData,
    ReportData,
)
from .config import get_settings
from .content import ReportDocument, build_document
from .formatting import get_tz, month_name
from .models import ReportFormat
from .render_csv import CsvRenderer
from .render_pdf import PdfRenderer
from .render_xlsx import XlsxRenderer


class Renderer(Protocol):
    content_type: str
    extension: str

    def render(self, document: ReportDocument) -> bytes: ...


@dataclass(frozen=True)
class RenderedReport:
    content: bytes
    filename: str
    content_type: str


RENDERERS: Dict[ReportFormat, Renderer] = {
    ReportFormat.PDF: PdfRenderer(),
    ReportFormat.EXCEL: XlsxRenderer(),
    ReportFormat.CSV: CsvRenderer(),
}


def get_renderer(fmt: ReportFormat) -> Renderer:
    try:
        return RENDERERS[ReportFormat(fmt)]
    except (KeyError, ValueError):
        raise ValueError(f"unknown report format: {fmt!r}") from None


def report_basename(data: ReportData) -> str:
    if isinstance(data, MonthlyReportData):
        return f"Monthly_Report_{month_name(data.month)}_{data.year}"
    if isinstance(data, DateRangeReportData):
        return f"DateRange_Report_{data.from_date.isoformat()}_to_{data.to_date.isoformat()}"
    if isinstance(data, BudgetReportData):
        return f"Budget_Report_{month_name(data.month)}_{data.year}"
    if isinstance(data, FullAccountReportData):
        if data.from_date and data.to_date:
            return f"Full_Account_Report_{data.from_date.isoformat()}_to_{data.to_date.isoformat()}"
        return "Full_Account_Report"
    raise TypeError(f"unsupported report data: {type(data).__name__}")


def report_filename(data: ReportData, fmt: ReportFormat) -> str:
    return f"{report_basename(data)}.{get_renderer(fmt).extension}"


def render_report(
    data: ReportData,
    fmt: ReportFormat,
    *,
    generated_at: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> RenderedReport:
    """
    Render aggregated report data with the strategy registered for `fmt`.

    The whole document is produced in memory; a renderer failure raises and
    no bytes are returned.
    """
    settings = get_settings()
    renderer = get_renderer(fmt)
    zone = tz if tz is not None else get_tz(settings.timezone)
    if generated_at is None and isinstance(data, FullAccountReportData):
        generated_at = data.generated_at
    document = build_document(
        data,
        generated_at=generated_at or datetime.now(zone),
        currency_symbol=settings.currency_symbol,
        tz=zone,
        brand_name=settings.brand_name,
    )
    return RenderedReport(
        content=renderer.render(document),
        filename=report_filename(data, fmt),
        content_type=renderer.content_type,
    )
