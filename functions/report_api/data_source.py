from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from google.cloud import firestore

from .models import AccountRecord, BudgetRecord, FinancialRecord, ReminderRecord, UserProfile
from .serialization import (
    account_from_doc,
    budget_from_doc,
    record_from_doc,
    reminder_from_doc,
    user_from_doc,
)


class FinanceDataSource(Protocol):
    """Read-only access to one user's finance documents."""

    def list_records(
        self, user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[FinancialRecord]: ...

    def get_budget(self, user_id: str, year: int, month: int) -> Optional[BudgetRecord]: ...

    def list_budgets(self, user_id: str) -> List[BudgetRecord]: ...

    def list_accounts(self, user_id: str) -> List[AccountRecord]: ...

    def list_reminders(self, user_id: str) -> List[ReminderRecord]: ...

    def get_user(self, user_id: str) -> Optional[UserProfile]: ...


class FirestoreFinanceSource:
    """
    `FinanceDataSource` over the `users/{user_id}/...` subcollections.

    Query errors are not caught here; they reach the HTTP entry point as-is.
    """

    def __init__(self, db):
        self._db = db

    def _user_ref(self, user_id: str):
        return self._db.collection("users").document(user_id)

    def list_records(
        self, user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[FinancialRecord]:
        query = self._user_ref(user_id).collection("transactions")
        if start is not None:
            query = query.where("date", ">=", start)
        if end is not None:
            query = query.where("date", "<=", end)
        query = query.order_by("date", direction=firestore.Query.DESCENDING)
        return [record_from_doc(d.id, d.to_dict() or {}) for d in query.stream()]

    def get_budget(self, user_id: str, year: int, month: int) -> Optional[BudgetRecord]:
        query = (
            self._user_ref(user_id)
            .collection("budgets")
            .where("year", "==", year)
            .where("month", "==", month)
            .limit(1)
        )
        for d in query.stream():
            return budget_from_doc(d.id, d.to_dict() or {})
        return None

    def list_budgets(self, user_id: str) -> List[BudgetRecord]:
        docs = self._user_ref(user_id).collection("budgets").stream()
        return [budget_from_doc(d.id, d.to_dict() or {}) for d in docs]

    def list_accounts(self, user_id: str) -> List[AccountRecord]:
        docs = self._user_ref(user_id).collection("accounts").stream()
        return [account_from_doc(d.id, d.to_dict() or {}) for d in docs]

    def list_reminders(self, user_id: str) -> List[ReminderRecord]:
        docs = self._user_ref(user_id).collection("reminders").stream()
        return [reminder_from_doc(d.id, d.to_dict() or {}) for d in docs]

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        doc = self._user_ref(user_id).get()
        if not doc.exists:
            return None
        return user_from_doc(doc.id, doc.to_dict() or {})
