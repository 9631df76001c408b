import os
from functools import lru_cache

from google.cloud import firestore

DEFAULT_EMULATOR_PROJECT = "demo-money-manager"


def get_project_id() -> str:
    return os.getenv("FIRESTORE_PROJECT_ID") or DEFAULT_EMULATOR_PROJECT


@lru_cache(maxsize=1)
def get_db() -> firestore.Client:
    """
    Firestore client shared by every request served by this instance.

    With `FIRESTORE_EMULATOR_HOST` set the client talks to the local emulator
    under `get_project_id()`; otherwise project and credentials come from the
    Cloud Functions runtime.
    """
    if os.getenv("FIRESTORE_EMULATOR_HOST"):
        return firestore.Client(project=get_project_id())
    return firestore.Client()
