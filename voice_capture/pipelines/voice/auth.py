"""Bearer token check for ingest requests."""

from __future__ import annotations

import hmac

from .types import AuthFailureReason

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from a ``Bearer <token>`` header value."""

    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    return authorization[len(_BEARER_PREFIX):]


def check_credential(authorization: str | None, expected_token: str) -> AuthFailureReason | None:
    """Compare the presented credential with the configured ingest token.

    Returns ``None`` when the request is authorized, otherwise the reason it
    was rejected.
    """

    token = extract_bearer_token(authorization)
    if token is None:
        return AuthFailureReason.MISSING_CREDENTIAL

    if not hmac.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8")):
        return AuthFailureReason.INVALID_CREDENTIAL

    return None


__all__ = ["check_credential", "extract_bearer_token"]
