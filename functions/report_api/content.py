"""
Presentation content shared by every output format.

`build_document()` turns one report-data variant into a `ReportDocument`:
the title, the period, exactly four summary cards and an ordered list of
tables. Labels, headers, rounded percentages and section gating are decided
here once, so the PDF, spreadsheet and CSV renderers only differ in how they
draw the same cells.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .aggregator import (
    DEFAULT_CATEGORY,
    BudgetReportData,
    DateRangeReportData,
    FullAccountReportData,
    MonthlyReportData,
    ReportData,
)
from .classification import display_type
from .formatting import format_currency, format_date, format_percent, month_name, percentage, truncate
from .models import FinancialRecord, ReportType

MAX_CELL_CHARS = 40
MAX_REMINDERS = 10
MAX_BUDGETS = 12


class Tone(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    RATIO = "ratio"


class ValueKind(str, Enum):
    TEXT = "text"
    CURRENCY = "currency"
    COUNT = "count"
    PERCENT = "percent"


Value = Union[str, int, Decimal]


def display_value(value: Value, kind: ValueKind, currency_symbol: str) -> str:
    if kind is ValueKind.CURRENCY:
        return format_currency(value, currency_symbol)
    if kind is ValueKind.PERCENT:
        return format_percent(value)
    return str(value)


@dataclass(frozen=True)
class Cell:
    value: Value
    kind: ValueKind = ValueKind.TEXT
    tone: Optional[Tone] = None
    max_chars: int = MAX_CELL_CHARS

    def text(self, currency_symbol: str) -> str:
        return truncate(display_value(self.value, self.kind, currency_symbol), self.max_chars)


@dataclass(frozen=True)
class SummaryCard:
    label: str
    value: Value
    kind: ValueKind
    tone: Tone
    subtext: Optional[str] = None

    def text(self, currency_symbol: str) -> str:
        return display_value(self.value, self.kind, currency_symbol)


@dataclass(frozen=True)
class Table:
    title: str
    headers: Tuple[str, ...]
    rows: List[Tuple[Cell, ...]]
    col_ratios: Tuple[float, ...]
    empty_message: Optional[str] = None

    def __post_init__(self):
        if len(self.col_ratios) != len(self.headers):
            raise ValueError(f"table {self.title!r}: {len(self.headers)} headers, {len(self.col_ratios)} ratios")
        if abs(sum(self.col_ratios) - 1.0) > 1e-9:
            raise ValueError(f"table {self.title!r}: column ratios must sum to 1.0")
        for row in self.rows:
            if len(row) != len(self.headers):
                raise ValueError(f"table {self.title!r}: row width does not match headers")


@dataclass(frozen=True)
class ReportDocument:
    report_type: ReportType
    title: str
    period: str
    cards: Tuple[SummaryCard, ...]
    tables: List[Table]
    generated_at: datetime
    currency_symbol: str
    account_holder: Optional[str] = None
    brand_name: str = "Money Manager"

    def __post_init__(self):
        if len(self.cards) != 4:
            raise ValueError(f"a report has exactly 4 summary cards, got {len(self.cards)}")


# --- cell helpers --------------------------------------------------------------


def _text(value: str, max_chars: int = MAX_CELL_CHARS) -> Cell:
    return Cell(value, ValueKind.TEXT, max_chars=max_chars)


def _money(value: Decimal, tone: Optional[Tone] = None) -> Cell:
    return Cell(value, ValueKind.CURRENCY, tone)


def _pct(value: Decimal) -> Cell:
    return Cell(value, ValueKind.PERCENT)


def _signed_tone(value: Decimal) -> Tone:
    return Tone.POSITIVE if value >= 0 else Tone.NEGATIVE


def _category_table(title: str, categories: Dict[str, Decimal], total: Decimal, places: int, **kw) -> Table:
    rows = [(_text(cat), _money(amt, Tone.NEGATIVE), _pct(percentage(amt, total, places))) for cat, amt in categories.items()]
    return Table(title, ("Category", "Amount", "% of Total"), rows, (0.45, 0.3, 0.25), **kw)


def _transaction_table(
    title: str, records: Sequence[FinancialRecord], category_chars: int, zone: tzinfo, **kw
) -> Table:
    rows = []
    for record in records:
        tone = Tone.POSITIVE if display_type(record.type) == "Income" else Tone.NEGATIVE
        rows.append(
            (
                _text(format_date(record.date, zone)),
                _text(display_type(record.type)),
                _text(record.category or DEFAULT_CATEGORY, category_chars),
                _money(record.amount, tone),
            )
        )
    return Table(title, ("Date", "Type", "Category", "Amount"), rows, (0.25, 0.2, 0.25, 0.3), **kw)


# --- per report type -----------------------------------------------------------


def _monthly(data: MonthlyReportData, zone: tzinfo) -> Tuple[str, Tuple[SummaryCard, ...], List[Table]]:
    savings_ratio = percentage(data.savings, data.total_income, 1)
    cards = (
        SummaryCard("Monthly Income", data.total_income, ValueKind.CURRENCY, Tone.POSITIVE),
        SummaryCard("Monthly Expense", data.total_expense, ValueKind.CURRENCY, Tone.NEGATIVE),
        SummaryCard(
            "Savings",
            data.savings,
            ValueKind.CURRENCY,
            Tone.NEUTRAL,
            "Positive" if data.savings >= 0 else "Deficit",
        ),
        SummaryCard("Savings Ratio", savings_ratio, ValueKind.PERCENT, Tone.RATIO),
    )
    tables = [
        Table(
            "Income vs Expense Breakdown",
            ("Metric", "Amount", "Percentage"),
            [
                (_text("Monthly Income"), _money(data.total_income, Tone.POSITIVE), _pct(Decimal(100))),
                (
                    _text("Monthly Expense"),
                    _money(data.total_expense, Tone.NEGATIVE),
                    _pct(percentage(data.total_expense, data.total_income, 0)),
                ),
                (_text("Net Savings"), _money(data.savings, _signed_tone(data.savings)), _pct(savings_ratio)),
            ],
            (0.4, 0.35, 0.25),
        ),
        _category_table(
            "Category-wise Expense Analysis",
            data.categories,
            data.total_expense,
            1,
            empty_message="No expense data available",
        ),
    ]
    if data.grouped_by_day:
        rows = [
            (
                _text(day),
                _money(totals.income, Tone.POSITIVE),
                _money(totals.expense, Tone.NEGATIVE),
                _money(totals.net, _signed_tone(totals.net)),
            )
            for day, totals in sorted(data.grouped_by_day.items())
        ]
        tables.append(Table("Daily Summary", ("Date", "Income", "Expense", "Net"), rows, (0.25, 0.25, 0.25, 0.25)))
    return "Monthly Financial Report", cards, tables


def _date_range(data: DateRangeReportData, zone: tzinfo) -> Tuple[str, Tuple[SummaryCard, ...], List[Table]]:
    cards = (
        SummaryCard("Total Income", data.total_income, ValueKind.CURRENCY, Tone.POSITIVE),
        SummaryCard("Total Expenses", data.total_expense, ValueKind.CURRENCY, Tone.NEGATIVE),
        SummaryCard("Net Change", data.savings, ValueKind.CURRENCY, _signed_tone(data.savings)),
        SummaryCard(
            "Total Transactions",
            data.transaction_count,
            ValueKind.COUNT,
            Tone.NEUTRAL,
            f"{data.income_count} income, {data.expense_count} expenses",
        ),
    )
    tables = [
        _transaction_table(
            f"Transaction Details ({data.transaction_count} Total)",
            data.transactions,
            15,
            zone,
            empty_message="No transactions found",
        )
    ]
    return "Transaction Report", cards, tables


def _budget(data: BudgetReportData, zone: tzinfo) -> Tuple[str, Tuple[SummaryCard, ...], List[Table]]:
    exceeded = data.exceeded
    usage = Decimal(data.percentage_used)
    left = abs(data.remaining_amount)
    cards = (
        SummaryCard("Fixed Budget", data.monthly_budget, ValueKind.CURRENCY, Tone.NEUTRAL),
        SummaryCard("Amount Spent", data.total_spent, ValueKind.CURRENCY, Tone.NEGATIVE),
        SummaryCard(
            "Overspent By" if exceeded else "Budget Remaining",
            left,
            ValueKind.CURRENCY,
            Tone.NEGATIVE if exceeded else Tone.POSITIVE,
            "EXCEEDED" if exceeded else "Safe",
        ),
        SummaryCard("Budget Usage", usage, ValueKind.PERCENT, Tone.NEGATIVE if exceeded else Tone.POSITIVE),
    )
    tables = [
        Table(
            "Budget Status & Analysis",
            ("Metric", "Amount", "Status"),
            [
                (_text("Fixed Monthly Budget"), _money(data.monthly_budget), _pct(Decimal(100))),
                (_text("Amount Spent This Month"), _money(data.total_spent, Tone.NEGATIVE), _pct(usage)),
                (
                    _text("Overspent Amount" if exceeded else "Remaining Budget"),
                    _money(left, Tone.NEGATIVE if exceeded else Tone.POSITIVE),
                    _text("—"),
                ),
                (_text("Monthly Income"), _money(data.total_income, Tone.POSITIVE), _text("Reference")),
                (
                    _text("Savings After Budget"),
                    _money(data.savings, _signed_tone(data.savings)),
                    _pct(percentage(data.savings, data.total_income, 1)),
                ),
            ],
            (0.4, 0.35, 0.25),
        )
    ]
    plan = data.recovery_plan
    if plan is not None:
        tables.append(
            Table(
                "Overspending Recovery Plan",
                ("Item", "Amount / Action", "Status"),
                [
                    (_text("This Month Overspent By"), _money(plan.overspent_amount, Tone.NEGATIVE), _text("Exceeded")),
                    (_text("Next Month Budget (Fixed)"), _money(plan.next_month_budget), _pct(Decimal(100))),
                    (
                        _text("Extra To Save Next Month"),
                        _money(plan.extra_to_save, Tone.NEGATIVE),
                        _text(f"{format_percent(plan.extra_percent_of_budget)} of budget"),
                    ),
                    (
                        _text("Target Spending For Recovery"),
                        _money(plan.target_spending, Tone.POSITIVE),
                        _pct(plan.target_percent_of_budget),
                    ),
                    (_text("Financial Strategy"), _text(plan.strategy), _text("Action Required")),
                ],
                (0.35, 0.4, 0.25),
            )
        )
    if data.expenses_by_category:
        tables.append(
            _category_table("Category-wise Expense Breakdown", data.expenses_by_category, data.total_spent, 1)
        )
    return "Budget Analysis Report", cards, tables


def _full_account(data: FullAccountReportData, zone: tzinfo) -> Tuple[str, Tuple[SummaryCard, ...], List[Table]]:
    cards = (
        SummaryCard("Active Accounts", data.account_count, ValueKind.COUNT, Tone.NEUTRAL),
        SummaryCard("Total Balance", data.total_account_balance, ValueKind.CURRENCY, Tone.POSITIVE),
        SummaryCard("Total Income", data.total_income, ValueKind.CURRENCY, Tone.POSITIVE),
        SummaryCard("Total Expenses", data.total_expense, ValueKind.CURRENCY, Tone.NEGATIVE),
    )
    tables = [
        Table(
            "Financial Summary",
            ("Metric", "Value"),
            [
                (_text("Total Income"), _money(data.total_income, Tone.POSITIVE)),
                (_text("Total Expense"), _money(data.total_expense, Tone.NEGATIVE)),
                (_text("Net Savings"), _money(data.net_balance, _signed_tone(data.net_balance))),
                (_text("Total Transactions"), Cell(data.transaction_count, ValueKind.COUNT)),
            ],
            (0.6, 0.4),
        )
    ]
    if data.accounts:
        rows = [
            (
                _text(acc.name),
                _money(acc.balance),
                _pct(percentage(acc.balance, data.total_account_balance, 0)),
            )
            for acc in data.accounts
        ]
        tables.append(Table("Account Details", ("Account Name", "Balance", "Share"), rows, (0.4, 0.35, 0.25)))
    if data.category_wise_summary:
        tables.append(
            Table(
                "Category-wise Expense Summary",
                ("Category", "Amount", "% of Total"),
                [
                    (_text(cat), _money(amt, Tone.NEGATIVE), _pct(percentage(amt, data.total_expense, 0)))
                    for cat, amt in data.category_wise_summary.items()
                ],
                (0.5, 0.25, 0.25),
            )
        )
    if data.reminders:
        rows = [
            (
                _text(r.title or "Unnamed"),
                _money(r.amount),
                _text(format_date(r.due_date, zone) if r.due_date else "N/A"),
                _text(r.status or "Pending"),
            )
            for r in data.reminders[:MAX_REMINDERS]
        ]
        tables.append(
            Table("Bill Reminders", ("Reminder", "Amount", "Due Date", "Status"), rows, (0.35, 0.25, 0.2, 0.2))
        )
    if data.budgets:
        rows = [
            (_text(f"{month_name(b.month)} {b.year}"), _money(b.amount), _text(b.status or "Active"))
            for b in data.budgets[:MAX_BUDGETS]
        ]
        tables.append(Table("Budget Details", ("Month", "Amount", "Status"), rows, (0.4, 0.35, 0.25)))
    if data.transactions:
        tables.append(
            _transaction_table(f"Transaction History ({data.transaction_count} Total)", data.transactions, 12, zone)
        )
    return "Full Account Report", cards, tables


_BUILDERS: Dict[type, Tuple[ReportType, Callable]] = {
    MonthlyReportData: (ReportType.MONTHLY, _monthly),
    DateRangeReportData: (ReportType.DATE_RANGE, _date_range),
    BudgetReportData: (ReportType.BUDGET, _budget),
    FullAccountReportData: (ReportType.FULL_ACCOUNT, _full_account),
}


def report_type_of(data: ReportData) -> ReportType:
    try:
        return _BUILDERS[type(data)][0]
    except KeyError:
        raise TypeError(f"unsupported report data: {type(data).__name__}") from None


def build_document(
    data: ReportData,
    *,
    generated_at: datetime,
    currency_symbol: str,
    tz: tzinfo,
    brand_name: str = "Money Manager",
) -> ReportDocument:
    """Build the format-independent document for one report-data value."""
    report_type = report_type_of(data)
    _, builder = _BUILDERS[type(data)]
    title, cards, tables = builder(data, tz)
    return ReportDocument(
        report_type=report_type,
        title=title,
        period=data.period,
        cards=cards,
        tables=tables,
        generated_at=generated_at,
        currency_symbol=currency_symbol,
        account_holder=data.user_name if isinstance(data, FullAccountReportData) else None,
        brand_name=brand_name,
    )
