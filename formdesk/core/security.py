"""Security utilities for bearer access tokens."""

from datetime import datetime, timedelta, timezone

import jwt

from formdesk.core.config import settings


# =============================================================================
# Access Token (JWT in Authorization header)
# =============================================================================

def create_access_token(user_id: int, email: str, role: str) -> str:
    """
    Create signed access JWT.

    Always signs with current secret (JWT_SECRET).
    Token issuance belongs to the identity provider; this is used by
    tests and operational scripts.
    """
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify access JWT.

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


def parse_bearer_header(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
