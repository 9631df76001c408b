from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .models import AccountRecord, BudgetRecord, FinancialRecord, ReminderRecord, UserProfile


def _dt_to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def record_from_doc(doc_id: str, data: Dict[str, Any]) -> FinancialRecord:
    return FinancialRecord.model_validate({**data, "id": data.get("id") or doc_id})


def account_from_doc(doc_id: str, data: Dict[str, Any]) -> AccountRecord:
    return AccountRecord.model_validate(
        {
            "id": data.get("id") or doc_id,
            "name": data.get("name"),
            "balance": data.get("balance") or 0,
        }
    )


def reminder_from_doc(doc_id: str, data: Dict[str, Any]) -> ReminderRecord:
    return ReminderRecord.model_validate(
        {
            "id": data.get("id") or doc_id,
            # Older clients stored the reminder label as `name`.
            "title": data.get("title") or data.get("name"),
            "amount": data.get("amount") or 0,
            "dueDate": data.get("dueDate"),
            "status": data.get("status"),
        }
    )


def budget_from_doc(doc_id: str, data: Dict[str, Any]) -> BudgetRecord:
    return BudgetRecord.model_validate(
        {
            "id": data.get("id") or doc_id,
            "year": data.get("year"),
            "month": data.get("month"),
            "amount": data.get("amount") or 0,
            "status": data.get("status"),
        }
    )


def user_from_doc(doc_id: str, data: Dict[str, Any]) -> UserProfile:
    return UserProfile(id=doc_id, username=data.get("username"))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        # Integral amounts stay ints in JSON, everything else a float.
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, datetime):
        return _dt_to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return {k: _jsonable(v) for k, v in value.model_dump(by_alias=True).items()}
    if is_dataclass(value):
        out = {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
        for name in getattr(value, "derived", ()):
            out[name] = _jsonable(getattr(value, name))
        return out
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def report_data_to_dict(data: Any) -> Dict[str, Any]:
    """JSON-ready view of an aggregated report (used by the summary endpoint)."""
    return _jsonable(data)
