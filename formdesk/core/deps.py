"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from formdesk.core.config import settings
from formdesk.core.exceptions import Forbidden, Unauthorized
from formdesk.core.security import decode_access_token, parse_bearer_header
from formdesk.db.enums import Role
from formdesk.db.models import User
from formdesk.db.session import SessionLocal
from formdesk.schemas.auth import TokenPayload, UserSession


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


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
) -> UserSession:
    """
    Resolve the bearer token into a UserSession.

    Validates:
    - Authorization header carries a Bearer token
    - JWT is valid and not expired
    - User still exists and holds a known role

    Raises:
        Unauthorized: Authentication failed
        Forbidden: Unknown role
    """
    token = parse_bearer_header(request.headers.get("Authorization"))
    if not token:
        raise Unauthorized("No token provided")

    try:
        payload = TokenPayload.model_validate(decode_access_token(token))
    except Exception:
        raise Unauthorized("Invalid token")

    user = db.get(User, payload.sub)
    if not user:
        raise Unauthorized("User not found")

    # Stored role is authoritative; tokens outlive role changes
    if not Role.has_value(user.role):
        raise Forbidden(f"Unknown role '{user.role}'. Contact administrator.")

    return UserSession(user_id=user.id, email=user.email, role=Role(user.role))


def get_drive_client(request: Request):
    """Drive mirror client built at startup (None when the mirror is disabled)."""
    return getattr(request.app.state, "drive_client", None)


def get_client_ip(request: Request | None) -> str | None:
    """
    Extract client IP from request.

    Only trusts X-Forwarded-For when TRUST_PROXY_HEADERS=True (behind reverse proxy).
    """
    if not request:
        return None

    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For: client, proxy1, proxy2 - take first
            return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None


# =============================================================================
# Permission Check Helpers
# =============================================================================

def is_owner_or_admin(session: UserSession, created_by_user_id: int | None) -> bool:
    """Check if user is the creator OR an admin."""
    return session.user_id == created_by_user_id or session.role == Role.ADMIN
