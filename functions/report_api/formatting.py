from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_CENT = Decimal("0.01")


def get_tz(tz_name: str) -> tzinfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def localize(dt: datetime, tz: tzinfo) -> datetime:
    # Firestore returns aware UTC datetimes; naive values are treated as UTC.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def format_date(value: date | datetime, tz: tzinfo | None = None) -> str:
    if isinstance(value, datetime) and tz is not None:
        value = localize(value, tz)
    return value.strftime("%Y-%m-%d")


def percentage(part: Decimal, base: Decimal, places: int) -> Decimal:
    """
    `part / base * 100` rounded half-up to `places` decimals.

    A zero base yields a bare `Decimal("0")` (renders as "0"), never a
    division error; negative zero is normalised away.
    """
    if not base:
        return Decimal("0")
    value = (Decimal(part) / Decimal(base) * 100).quantize(
        Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
    )
    if value.is_zero():
        return value.copy_abs()
    return value


def format_percent(value: Decimal) -> str:
    return f"{value}%"


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str) -> str:
    return f"{symbol}{round_money(amount):,.2f}"


def format_generated_on(dt: datetime) -> str:
    return f"{month_name(dt.month)} {dt.day}, {dt.year}"


def truncate(text: str, limit: int) -> str:
    return text[:limit]
