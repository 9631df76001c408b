from __future__ import annotations

import csv
from io import StringIO
from typing import List, Sequence

from .content import Cell, ReportDocument, SummaryCard, Table, ValueKind
from .formatting import round_money

FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")


def sanitize_csv_value(value: str) -> str:
    """
    Prefix text that a spreadsheet would evaluate as a formula with a tab.
    """
    if value.startswith(FORMULA_TRIGGERS):
        return "\t" + value
    return value


def _raw(value, kind: ValueKind) -> str:
    if kind is ValueKind.CURRENCY:
        return str(round_money(value))
    return str(value)


def _cell(cell: Cell) -> str:
    if cell.kind is ValueKind.TEXT:
        return sanitize_csv_value(cell.text(""))
    return _raw(cell.value, cell.kind)


def _card_row(card: SummaryCard) -> List[str]:
    row = [sanitize_csv_value(card.label), _raw(card.value, card.kind)]
    if card.subtext:
        row.append(sanitize_csv_value(card.subtext))
    return row


def document_rows(document: ReportDocument) -> List[Sequence[str]]:
    """Every row of the flat export, in output order."""
    rows: List[Sequence[str]] = [
        [document.title, sanitize_csv_value(document.period)],
        ["Generated At", document.generated_at.isoformat()],
    ]
    if document.account_holder:
        rows.append(["Account Holder", sanitize_csv_value(document.account_holder)])
    rows.append([])
    rows.append(["Summary"])
    rows.extend(_card_row(card) for card in document.cards)
    for table in document.tables:
        rows.append([])
        rows.extend(_table_rows(table))
    return rows


def _table_rows(table: Table) -> List[Sequence[str]]:
    rows: List[Sequence[str]] = [[table.title]]
    if not table.rows:
        rows.append([table.empty_message or ""])
        return rows
    rows.append(list(table.headers))
    rows.extend([_cell(c) for c in row] for row in table.rows)
    return rows


class CsvRenderer:
    content_type = "text/csv; charset=utf-8"
    extension = "csv"

    def render(self, document: ReportDocument) -> bytes:
        out = StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerows(document_rows(document))
        return out.getvalue().encode("utf-8")
