"""FastAPI dependencies for authentication, authorization, and database access."""

import logging
from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from grievance_api.core.errors import Forbidden, Unauthenticated
from grievance_api.core.security import decode_session_token, extract_token
from grievance_api.db.models import User
from grievance_api.db.session import SessionLocal
from grievance_api.schemas.auth import UserSession
from grievance_api.services import directory_service

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def authenticate_token(db: Session, token: str | None) -> User:
    """
    Resolve a session token to an active user.

    Validates:
    - Token exists, is signed with a current secret and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Raises:
        Unauthenticated: Authentication failed
    """
    if not token:
        raise Unauthenticated("No token, authorization denied")

    try:
        payload = decode_session_token(token)
        user_id = UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise Unauthenticated("Token is not valid")

    user = db.get(User, user_id)
    if not user:
        raise Unauthenticated("User not found")

    if not user.is_active:
        raise Unauthenticated("Account disabled")

    if user.token_version != payload.get("token_version"):
        raise Unauthenticated("Session revoked")

    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Get authenticated user from the session token header."""
    return authenticate_token(db, extract_token(request.headers))


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
) -> UserSession:
    """
    Get full session context: user identity plus current capabilities.

    This is the PRIMARY auth dependency for most endpoints. Roles embedded in
    the token are ignored; capabilities come from the role assignments as they
    are right now.
    """
    user = get_current_user(request, db)
    request.state.user_id = str(user.id)
    return UserSession(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        capabilities=directory_service.resolve_capabilities(db, user.id),
    )


def require_super_admin(session: UserSession = Depends(get_current_session)) -> UserSession:
    if not session.capabilities.is_super_admin:
        logger.warning("Denied admin access for user %s", session.user_id)
        raise Forbidden("Access denied. Super admin role required.")
    return session


def require_officer(session: UserSession = Depends(get_current_session)) -> UserSession:
    """Nodal officer, department head (any department) or super admin."""
    if not session.capabilities.is_officer:
        logger.warning("Denied officer access for user %s", session.user_id)
        raise Forbidden("Access denied. Officer role required.")
    return session
