from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Optional, Union
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.writer.excel import ExcelWriter

from .content import Cell, ReportDocument, SummaryCard, Table, Tone, ValueKind

SHEET_TITLE = "Report"

GREEN = "FF00B050"
RED = "FFFF0000"
BLUE = "FF0070C0"
ORANGE = "FFF97316"
NAVY = "FF1E3A8A"
WHITE = "FFFFFFFF"
GRAY = "FF6B7280"

TONE_COLORS = {
    Tone.POSITIVE: GREEN,
    Tone.NEGATIVE: RED,
    Tone.NEUTRAL: BLUE,
    Tone.RATIO: ORANGE,
}

COLUMN_WIDTHS = (34, 22, 22, 18)

NAVY_FILL = PatternFill(start_color=NAVY, end_color=NAVY, fill_type="solid")


def _percent_format(value: Decimal) -> str:
    places = max(0, -value.as_tuple().exponent) if isinstance(value, Decimal) else 0
    return ("0." + "0" * places if places else "0") + '"%"'


class _SheetWriter:
    """Appends report sections to a worksheet, one row cursor moving strictly down."""

    def __init__(self, ws, currency_symbol: str):
        self.ws = ws
        self.row = 1
        self.money_format = f'"{currency_symbol}"#,##0.00'

    def skip(self, rows: int = 1) -> None:
        self.row += rows

    def put(
        self,
        column: int,
        value: Union[str, int, float],
        *,
        bold: bool = False,
        size: Optional[int] = None,
        color: Optional[str] = None,
        italic: bool = False,
    ):
        cell = self.ws.cell(row=self.row, column=column, value=value)
        if isinstance(value, str):
            # openpyxl reads a leading "=" as a formula
            cell.data_type = "s"
        if bold or size or color or italic:
            cell.font = Font(bold=bold, size=size, color=color, italic=italic)
        return cell

    def put_value(self, column: int, value, kind: ValueKind, tone: Optional[Tone], *, bold: bool = False):
        color = TONE_COLORS.get(tone) if tone else None
        if kind is ValueKind.CURRENCY:
            cell = self.put(column, float(value), bold=bold, color=color)
            cell.number_format = self.money_format
        elif kind is ValueKind.PERCENT:
            cell = self.put(column, float(value), bold=bold, color=color)
            cell.number_format = _percent_format(value)
        elif kind is ValueKind.COUNT:
            cell = self.put(column, int(value), bold=bold, color=color)
        else:
            cell = self.put(column, str(value), bold=bold, color=color)
        return cell

    def banner(self, doc: ReportDocument) -> None:
        for column in range(1, len(COLUMN_WIDTHS) + 1):
            self.ws.cell(row=self.row, column=column).fill = NAVY_FILL
        self.put(1, f"{doc.brand_name} Report", bold=True, size=16, color=WHITE)
        generated = self.put(len(COLUMN_WIDTHS), f"Generated: {doc.generated_at.strftime('%Y-%m-%d %H:%M')}", color=WHITE)
        generated.alignment = Alignment(horizontal="right")
        self.ws.row_dimensions[self.row].height = 28
        self.skip(2)

    def heading(self, doc: ReportDocument) -> None:
        self.put(1, doc.title, bold=True, size=14)
        self.skip()
        self.put(1, "Period", bold=True)
        self.put(2, doc.period)
        self.skip()
        if doc.account_holder:
            self.put(1, "Account Holder", bold=True)
            self.put(2, doc.account_holder)
            self.skip()
        self.skip()

    def summary(self, cards: tuple[SummaryCard, ...]) -> None:
        self.put(1, "Summary", bold=True, size=12)
        self.skip()
        for card in cards:
            self.put(1, card.label, bold=True)
            self.put_value(2, card.value, card.kind, card.tone, bold=True)
            if card.subtext:
                self.put(3, card.subtext, color=TONE_COLORS[card.tone])
            self.skip()
        self.skip()

    def table(self, table: Table) -> None:
        self.put(1, table.title, bold=True, size=12)
        self.skip()
        if not table.rows:
            self.put(1, table.empty_message or "", italic=True, color=GRAY)
            self.skip(2)
            return
        for column, header in enumerate(table.headers, start=1):
            cell = self.put(column, header, bold=True, color=WHITE)
            cell.fill = NAVY_FILL
        self.skip()
        for row in table.rows:
            for column, cell in enumerate(row, start=1):
                self._put_cell(column, cell)
            self.skip()
        self.skip()

    def _put_cell(self, column: int, cell: Cell) -> None:
        if cell.kind is ValueKind.TEXT:
            self.put(column, cell.text(""), color=TONE_COLORS.get(cell.tone) if cell.tone else None)
        else:
            self.put_value(column, cell.value, cell.kind, cell.tone)


class XlsxRenderer:
    content_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    def render(self, document: ReportDocument) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE

        writer = _SheetWriter(ws, document.currency_symbol)
        writer.banner(document)
        writer.heading(document)
        writer.summary(document.cards)
        for table in document.tables:
            writer.table(table)

        for idx, width in enumerate(COLUMN_WIDTHS, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width

        stamp = _utc_naive(document.generated_at)
        wb.properties.created = stamp
        wb.properties.modified = stamp

        buf = BytesIO()
        with ZipFile(buf, "w", ZIP_DEFLATED, allowZip64=True) as archive:
            ExcelWriter(wb, archive).write_data()
        return _pin_entry_times(buf.getvalue(), stamp)


def _utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _pin_entry_times(payload: bytes, stamp: datetime) -> bytes:
    """Rewrite every zip entry with the document's timestamp so equal documents give equal bytes."""
    out = BytesIO()
    with ZipFile(BytesIO(payload)) as src, ZipFile(out, "w", ZIP_DEFLATED, allowZip64=True) as dst:
        for info in src.infolist():
            entry = ZipInfo(info.filename, date_time=stamp.timetuple()[:6])
            entry.compress_type = ZIP_DEFLATED
            dst.writestr(entry, src.read(info.filename))
    return out.getvalue()
