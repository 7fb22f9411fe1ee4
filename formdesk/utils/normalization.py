"""Input normalization helpers."""

from typing import Optional

from email_validator import EmailNotValidError, validate_email


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    email = email.strip().lower()
    return email or None


def is_valid_email(email: str) -> bool:
    """Syntax-only check (no DNS lookup)."""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
