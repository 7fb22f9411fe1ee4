"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel

from formdesk.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: int  # user_id
    email: str | None = None
    role: str


class UserSession(BaseModel):
    """
    Identity for authenticated requests.

    Returned by the get_current_session dependency; carries everything
    needed for ownership and role checks.
    """
    user_id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
