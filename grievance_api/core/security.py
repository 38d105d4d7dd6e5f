"""Security utilities for JWT session tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt

from grievance_api.core.config import settings


# =============================================================================
# Session Token (JWT in the auth header)
# =============================================================================

def create_session_token(
    user_id: UUID,
    email: str,
    roles: list[dict[str, Any]],
    token_version: int,
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    The role list is a snapshot taken at login: clients may use it to pick a
    dashboard, but authorization re-reads assignments from the database.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "roles": roles,
        "token_version": token_version,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


def extract_token(headers: Any) -> str | None:
    """Read the session token from the portal header or an Authorization bearer."""
    token = headers.get(settings.AUTH_HEADER)
    if token:
        return token.strip()
    authorization = headers.get("authorization") or ""
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None
