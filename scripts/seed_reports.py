import os
from datetime import datetime, timedelta, timezone

from functions.report_api.firestore_client import get_db, get_project_id

USER_ID = "user_001"


def _sample_transactions(now: datetime):
    month_start = now.replace(day=1, hour=9, minute=0, second=0, microsecond=0)
    rows = [
        ("Income", 5000, None, 0),
        ("Expense", 1200, "Food", 4),
        ("expense", 800, "Rent", 1),
        ("Expense", 240.5, "Transport", 7),
        ("transfer", 300, None, 8),
        ("Expense", 95.25, "Food", 10),
    ]
    return [
        {
            "id": f"tx_{idx:03d}",
            "type": tx_type,
            "amount": amount,
            "category": category,
            "date": month_start + timedelta(days=offset),
        }
        for idx, (tx_type, amount, category, offset) in enumerate(rows, start=1)
    ]


def main() -> int:
    emulator = os.getenv("FIRESTORE_EMULATOR_HOST")
    if not emulator:
        print("ERROR: FIRESTORE_EMULATOR_HOST is not set (expected e.g. localhost:8080).")
        return 2

    db = get_db()
    user_ref = db.collection("users").document(USER_ID)

    if user_ref.get().exists:
        print(f"Seed skipped: users/{USER_ID} already exists.")
        return 0

    now = datetime.now(timezone.utc)
    user_ref.set({"username": "Alice", "created_at": now})

    transactions = _sample_transactions(now)
    for tx in transactions:
        user_ref.collection("transactions").document(tx.pop("id")).set(tx)

    user_ref.collection("accounts").document("acc_cash").set({"name": "Cash", "balance": 1200})
    user_ref.collection("accounts").document("acc_bank").set({"name": "Savings Bank", "balance": 48000})
    user_ref.collection("budgets").document(f"budget_{now:%Y_%m}").set(
        {"year": now.year, "month": now.month, "amount": 2000, "status": "Active"}
    )
    user_ref.collection("reminders").document("rem_rent").set(
        {"title": "Rent", "amount": 800, "dueDate": now + timedelta(days=20), "status": "Pending"}
    )

    print(
        f"Seeded users/{USER_ID} with {len(transactions)} transactions "
        f"into project={get_project_id()} via emulator={emulator}."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
