from datetime import datetime, timezone

import pytest
from flask import Flask


@pytest.fixture()
def app() -> Flask:
    return Flask(__name__)


@pytest.fixture()
def fake_db():
    from tests.fakes.firestore import FakeFirestore

    return FakeFirestore()


@pytest.fixture()
def seed(fake_db):
    """
    Write finance documents for one user into the fake.

    `seed("u1", transactions=[...], accounts=[...], ...)`; each item is a dict
    whose optional `id` becomes the document id.
    """

    def _seed(user_id: str, *, profile=None, **collections):
        user_ref = fake_db.collection("users").document(user_id)
        if profile is not None:
            user_ref.set(profile)
        for name, docs in collections.items():
            for idx, doc in enumerate(docs, start=1):
                doc = dict(doc)
                doc_id = doc.pop("id", f"{name[:2]}{idx}")
                user_ref.collection(name).document(doc_id).set(doc)

    return _seed


@pytest.fixture()
def utc():
    def _utc(*args) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)

    return _utc


@pytest.fixture(autouse=True)
def patch_report_api(monkeypatch, fake_db):
    """
    Point the report function at the in-memory Firestore fake.

    Every test runs as the internal caller unless it re-patches
    `authenticate_request`, and starts with default settings.
    """
    import functions.report_api.main as report_main
    from functions.report_api.auth import INTERNAL_UID
    from functions.report_api.config import get_settings

    for var in (
        "REPORT_TIMEZONE",
        "REPORT_CURRENCY_SYMBOL",
        "REPORT_BRAND_NAME",
        "REPORT_PDF_FONT_PATH",
        "REPORT_PDF_COMPRESS",
        "REPORT_EXPOSE_ERRORS",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()

    monkeypatch.setattr(report_main, "get_db", lambda: fake_db)
    monkeypatch.setattr(
        report_main,
        "authenticate_request",
        lambda _req: (INTERNAL_UID, None, None),
    )
    yield
    get_settings.cache_clear()
