from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReportType(str, Enum):
    MONTHLY = "monthly"
    DATE_RANGE = "daterange"
    BUDGET = "budget"
    FULL_ACCOUNT = "fullaccount"


class ReportFormat(str, Enum):
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"


def _to_decimal(value: Any) -> Any:
    # Floats go through their shortest repr so 0.1 stays 0.1.
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# --- request parameters ------------------------------------------------------


class MonthParams(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1970, le=9999)


class DateRangeParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: date = Field(alias="fromDate")
    to_date: date = Field(alias="toDate")

    @model_validator(mode="after")
    def check_order(self) -> "DateRangeParams":
        if self.from_date > self.to_date:
            raise ValueError("fromDate must not be after toDate")
        return self


class FullAccountParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: Optional[date] = Field(default=None, alias="fromDate")
    to_date: Optional[date] = Field(default=None, alias="toDate")

    @model_validator(mode="after")
    def check_order(self) -> "FullAccountParams":
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("fromDate must not be after toDate")
        return self


class MonthlyReportRequest(MonthParams):
    format: ReportFormat


class DateRangeReportRequest(DateRangeParams):
    format: ReportFormat


class BudgetReportRequest(MonthParams):
    format: ReportFormat


class FullAccountReportRequest(FullAccountParams):
    format: ReportFormat


# --- source records (read from Firestore) ------------------------------------


class FinancialRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    # Free text; classified by substring match, see classification.py
    type: str
    amount: Decimal
    date: datetime
    category: Optional[str] = None
    account: Optional[str] = None
    from_account: Optional[str] = Field(default=None, alias="fromAccount")
    to_account: Optional[str] = Field(default=None, alias="toAccount")
    description: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _to_decimal(value)


class AccountRecord(BaseModel):
    id: str
    name: str
    balance: Decimal = Decimal("0")

    @field_validator("balance", mode="before")
    @classmethod
    def coerce_balance(cls, value: Any) -> Any:
        return _to_decimal(value)


class ReminderRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: Optional[str] = None
    amount: Decimal = Decimal("0")
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    status: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _to_decimal(value)


class BudgetRecord(BaseModel):
    id: str
    year: int
    month: int = Field(ge=1, le=12)
    amount: Decimal = Decimal("0")
    status: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _to_decimal(value)


class UserProfile(BaseModel):
    id: str
    username: Optional[str] = None
