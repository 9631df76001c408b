"""
Aggregation of one user's finance documents into report data.

Each `build_*` function performs a handful of sequential, read-only queries
against a `FinanceDataSource` and returns one of the four report-data
variants below. Data-source errors are propagated unchanged; absent optional
documents (no budget, no accounts, no reminders) simply yield zero/empty
values.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from decimal import Decimal
from typing import ClassVar, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from .classification import Flow, classify
from .config import get_settings
from .data_source import FinanceDataSource
from .formatting import format_date, get_tz, localize, month_name, percentage
from .models import AccountRecord, BudgetRecord, FinancialRecord, ReminderRecord

DEFAULT_CATEGORY = "Other"
TOP_CATEGORIES = 10

ZERO = Decimal("0")


@dataclass
class DayTotals:
    income: Decimal = ZERO
    expense: Decimal = ZERO

    derived: ClassVar[Tuple[str, ...]] = ("net",)

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class MonthlyReportData:
    period: str
    month: int
    year: int
    total_income: Decimal
    total_expense: Decimal
    categories: Dict[str, Decimal]
    highest_category: str
    highest_amount: Decimal
    grouped_by_day: Dict[str, DayTotals]
    transactions: List[FinancialRecord]

    derived: ClassVar[Tuple[str, ...]] = ("savings", "transaction_count")

    @property
    def savings(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class DateRangeReportData:
    period: str
    from_date: date
    to_date: date
    total_income: Decimal
    total_expense: Decimal
    transactions: List[FinancialRecord]

    derived: ClassVar[Tuple[str, ...]] = ("savings", "transaction_count", "income_count", "expense_count")

    @property
    def savings(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def income_count(self) -> int:
        return sum(1 for t in self.transactions if classify(t.type) is Flow.INCOME)

    @property
    def expense_count(self) -> int:
        return sum(1 for t in self.transactions if classify(t.type) is Flow.EXPENSE)


@dataclass(frozen=True)
class RecoveryPlan:
    overspent_amount: Decimal
    next_month_budget: Decimal
    extra_to_save: Decimal
    extra_percent_of_budget: Decimal

    derived: ClassVar[Tuple[str, ...]] = ("target_spending", "target_percent_of_budget", "strategy")

    @property
    def target_spending(self) -> Decimal:
        return self.next_month_budget - self.extra_to_save

    @property
    def target_percent_of_budget(self) -> Decimal:
        return Decimal(100) - self.extra_percent_of_budget

    @property
    def strategy(self) -> str:
        return f"Reduce spending by {self.extra_percent_of_budget}% to recover"


@dataclass(frozen=True)
class BudgetReportData:
    period: str
    month: int
    year: int
    total_income: Decimal
    total_expense: Decimal
    monthly_budget: Decimal
    expenses_by_category: Dict[str, Decimal]
    expenses: List[FinancialRecord]
    incomes: List[FinancialRecord]
    all_transactions: List[FinancialRecord]

    derived: ClassVar[Tuple[str, ...]] = (
        "savings",
        "total_spent",
        "remaining_amount",
        "exceeded",
        "percentage_used",
        "recovery_plan",
    )

    @property
    def total_spent(self) -> Decimal:
        return self.total_expense

    @property
    def savings(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def remaining_amount(self) -> Decimal:
        return self.monthly_budget - self.total_spent

    @property
    def exceeded(self) -> bool:
        return self.total_spent > self.monthly_budget

    @property
    def percentage_used(self) -> str:
        # a string: "150.00", or "0" without a budget
        return str(percentage(self.total_spent, self.monthly_budget, 2))

    @property
    def recovery_plan(self) -> Optional[RecoveryPlan]:
        if not self.exceeded:
            return None
        overspent = self.total_spent - self.monthly_budget
        return RecoveryPlan(
            overspent_amount=overspent,
            next_month_budget=self.monthly_budget,
            extra_to_save=overspent,
            extra_percent_of_budget=percentage(overspent, self.monthly_budget, 1),
        )


@dataclass(frozen=True)
class FullAccountReportData:
    user_name: str
    period: str
    from_date: Optional[date]
    to_date: Optional[date]
    total_account_balance: Decimal
    total_income: Decimal
    total_expense: Decimal
    total_budget_allotted: Decimal
    category_wise_summary: Dict[str, Decimal]
    accounts: List[AccountRecord]
    transactions: List[FinancialRecord]
    reminders: List[ReminderRecord]
    budgets: List[BudgetRecord]
    generated_at: datetime = field(compare=False)

    derived: ClassVar[Tuple[str, ...]] = (
        "net_balance",
        "account_count",
        "transaction_count",
        "reminder_count",
        "budget_count",
    )

    @property
    def net_balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def account_count(self) -> int:
        return len(self.accounts)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def reminder_count(self) -> int:
        return len(self.reminders)

    @property
    def budget_count(self) -> int:
        return len(self.budgets)


ReportData = Union[MonthlyReportData, DateRangeReportData, BudgetReportData, FullAccountReportData]


# --- helpers -----------------------------------------------------------------


def _report_tz(tz: Optional[tzinfo]) -> tzinfo:
    return tz if tz is not None else get_tz(get_settings().timezone)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def month_window(year: int, month: int, tz: tzinfo) -> Tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    return start_of_day(date(year, month, 1), tz), end_of_day(date(year, month, last_day), tz)


def sort_desc(totals: Dict[str, Decimal]) -> Dict[str, Decimal]:
    # stable: equal totals keep first-seen order
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def category_of(record: FinancialRecord) -> str:
    return record.category or DEFAULT_CATEGORY


@dataclass
class _Totals:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    by_category: Dict[str, Decimal] = field(default_factory=dict)


def _accumulate(records: Iterable[FinancialRecord]) -> _Totals:
    totals = _Totals()
    for record in records:
        flow = classify(record.type)
        if flow is Flow.INCOME:
            totals.income += record.amount
        elif flow is Flow.EXPENSE:
            totals.expense += record.amount
            cat = category_of(record)
            totals.by_category[cat] = totals.by_category.get(cat, ZERO) + record.amount
    return totals


# --- builders ----------------------------------------------------------------


def build_monthly(
    source: FinanceDataSource, user_id: str, month: int, year: int, *, tz: Optional[tzinfo] = None
) -> MonthlyReportData:
    zone = _report_tz(tz)
    start, end = month_window(year, month, zone)
    records = source.list_records(user_id, start, end)
    logger.debug(f"Monthly report {year}-{month:02d} for user {user_id}: {len(records)} records")

    totals = _accumulate(records)
    grouped_by_day: Dict[str, DayTotals] = {}
    for record in records:
        flow = classify(record.type)
        day = f"{localize(record.date, zone).day:02d}"
        bucket = grouped_by_day.setdefault(day, DayTotals())
        if flow is Flow.INCOME:
            bucket.income += record.amount
        elif flow is Flow.EXPENSE:
            bucket.expense += record.amount

    categories = sort_desc(totals.by_category)
    highest = next(iter(categories.items()), ("N/A", ZERO))

    return MonthlyReportData(
        period=f"{month_name(month)} {year}",
        month=month,
        year=year,
        total_income=totals.income,
        total_expense=totals.expense,
        categories=categories,
        highest_category=highest[0],
        highest_amount=highest[1],
        grouped_by_day=grouped_by_day,
        transactions=records,
    )


def build_date_range(
    source: FinanceDataSource, user_id: str, from_date: date, to_date: date, *, tz: Optional[tzinfo] = None
) -> DateRangeReportData:
    zone = _report_tz(tz)
    start, end = start_of_day(from_date, zone), end_of_day(to_date, zone)
    records = source.list_records(user_id, start, end)
    logger.debug(f"Date range report {from_date}..{to_date} for user {user_id}: {len(records)} records")

    totals = _accumulate(records)
    return DateRangeReportData(
        period=f"{format_date(from_date)} to {format_date(to_date)}",
        from_date=from_date,
        to_date=to_date,
        total_income=totals.income,
        total_expense=totals.expense,
        transactions=records,
    )


def build_budget(
    source: FinanceDataSource, user_id: str, month: int, year: int, *, tz: Optional[tzinfo] = None
) -> BudgetReportData:
    zone = _report_tz(tz)
    budget = source.get_budget(user_id, year, month)
    start, end = month_window(year, month, zone)
    records = source.list_records(user_id, start, end)
    logger.debug(
        f"Budget report {year}-{month:02d} for user {user_id}: "
        f"{len(records)} records, budget={'set' if budget else 'none'}"
    )

    expenses = [r for r in records if classify(r.type) is Flow.EXPENSE]
    incomes = [r for r in records if classify(r.type) is Flow.INCOME]
    totals = _accumulate(records)

    return BudgetReportData(
        period=f"{month_name(month)} {year}",
        month=month,
        year=year,
        total_income=totals.income,
        total_expense=totals.expense,
        monthly_budget=budget.amount if budget else ZERO,
        expenses_by_category=sort_desc(totals.by_category),
        expenses=expenses,
        incomes=incomes,
        all_transactions=records,
    )


def full_account_period(from_date: Optional[date], to_date: Optional[date]) -> str:
    if from_date and to_date:
        return f"{format_date(from_date)} to {format_date(to_date)}"
    if from_date:
        return f"From {format_date(from_date)}"
    if to_date:
        return f"Through {format_date(to_date)}"
    return "All Time"


def build_full_account(
    source: FinanceDataSource,
    user_id: str,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> FullAccountReportData:
    zone = _report_tz(tz)
    user = source.get_user(user_id)
    accounts = source.list_accounts(user_id)
    reminders = source.list_reminders(user_id)
    budgets = source.list_budgets(user_id)

    start = start_of_day(from_date, zone) if from_date else None
    end = end_of_day(to_date, zone) if to_date else None
    records = source.list_records(user_id, start, end)
    logger.debug(
        f"Full account report for user {user_id}: {len(records)} records, "
        f"{len(accounts)} accounts, {len(reminders)} reminders, {len(budgets)} budgets"
    )

    totals = _accumulate(records)
    top = dict(list(sort_desc(totals.by_category).items())[:TOP_CATEGORIES])

    # Soonest due first, undated last; most recent budget month first.
    reminders = sorted(reminders, key=lambda r: (r.due_date is None, r.due_date and localize(r.due_date, zone)))
    budgets = sorted(budgets, key=lambda b: (b.year, b.month), reverse=True)

    return FullAccountReportData(
        user_name=(user.username if user and user.username else "N/A"),
        period=full_account_period(from_date, to_date),
        from_date=from_date,
        to_date=to_date,
        total_account_balance=sum((a.balance for a in accounts), ZERO),
        total_income=totals.income,
        total_expense=totals.expense,
        total_budget_allotted=sum((b.amount for b in budgets), ZERO),
        category_wise_summary=top,
        accounts=accounts,
        transactions=records,
        reminders=reminders,
        budgets=budgets,
        generated_at=now or datetime.now(zone),
    )
