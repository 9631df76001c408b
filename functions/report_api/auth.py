import os
from typing import Any, Dict, Mapping, Optional, Tuple

import firebase_admin
from firebase_admin import auth as firebase_auth

from .config import _is_truthy

INTERNAL_UID = "__internal__"

BEARER_SCHEME = "Bearer"
INTERNAL_KEY_HEADERS = ("X-Internal-Api-Key", "X-Internal-API-Key")

# (uid, error body, HTTP status); exactly one of uid / error body is set
AuthResult = Tuple[Optional[str], Optional[Dict[str, Any]], Optional[int]]


def _reject(message: str, code: str) -> AuthResult:
    return None, {"error": message, "code": code}, 401


def is_auth_disabled() -> bool:
    return _is_truthy(os.getenv("AUTH_DISABLED")) or os.getenv("AUTH_MODE", "enabled").lower() == "disabled"


def _internal_key_matches(headers: Mapping[str, str]) -> bool:
    expected = os.getenv("INTERNAL_API_KEY")
    if not expected:
        return False
    return any(headers.get(name) == expected for name in INTERNAL_KEY_HEADERS)


def _bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    scheme, _, token = headers.get("Authorization", "").strip().partition(" ")
    if scheme != BEARER_SCHEME:
        return None
    return token.strip()


def _firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        project_id = (
            os.getenv("FIRESTORE_PROJECT_ID")
            or os.getenv("GOOGLE_CLOUD_PROJECT")
            or os.getenv("GCP_PROJECT")
        )
        return firebase_admin.initialize_app(options={"projectId": project_id} if project_id else None)


def _uid_from_claims(claims: Mapping[str, Any]) -> Optional[str]:
    return claims.get("uid") or claims.get("user_id") or claims.get("sub")


def authenticate_request(request) -> AuthResult:
    """
    Resolve who is asking for a report.

    Scheduled exports and sibling functions present `X-Internal-Api-Key` and
    resolve to `INTERNAL_UID`; local development can switch verification off
    (`AUTH_DISABLED` / `AUTH_MODE=disabled`, caller `DEV_UID`); everyone else
    needs a Firebase ID token in `Authorization: Bearer ...`.
    """
    headers = request.headers
    if _internal_key_matches(headers):
        return INTERNAL_UID, None, None

    if is_auth_disabled():
        return os.getenv("DEV_UID", "dev-user"), None, None

    token = _bearer_token(headers)
    if token is None:
        return _reject("Missing Authorization header", "UNAUTHENTICATED")
    if not token:
        return _reject("Missing bearer token", "UNAUTHENTICATED")

    try:
        claims = firebase_auth.verify_id_token(token, app=_firebase_app())
    except Exception:
        return _reject("Invalid auth token", "INVALID_TOKEN")

    uid = _uid_from_claims(claims)
    if not uid:
        return _reject("Invalid auth token (missing uid)", "INVALID_TOKEN")
    return uid, None, None


def can_access(uid: str, user_id: str) -> bool:
    """Reports are readable by their owner and by internal callers only."""
    return uid == INTERNAL_UID or uid == user_id


def caller_label(uid: str) -> str:
    return "internal" if uid == INTERNAL_UID else uid
