"""Duplicate-submission policy checked before a Response is admitted."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from formdesk.core.exceptions import Conflict, ValidationError
from formdesk.db.models import Form, Response


def _response_exists(db: Session, form_id: int, *criteria) -> bool:
    stmt = select(Response.id).where(Response.form_id == form_id, *criteria).limit(1)
    return db.execute(stmt).first() is not None


def check_submission_allowed(
    db: Session,
    form: Form,
    *,
    email: str | None,
    ip_address: str | None,
) -> None:
    """
    Admit or reject a new submission for ``form``.

    Forms accepting multiple responses always admit. Otherwise an email is
    required (and must be unused) when the form asks for one, and the
    requester IP must not have submitted before.

    Check-then-insert is not serialized: two concurrent requests from the same
    address can both pass before either Response row exists.

    Raises:
        ValidationError: email required but missing
        Conflict: a prior response matches the email or IP
    """
    if form.allow_multiple_responses:
        return

    if form.require_email:
        if not email:
            raise ValidationError("Email is required for this form")
        if _response_exists(db, form.id, Response.respondent_email == email):
            raise Conflict("This form has already been submitted")

    if ip_address and _response_exists(db, form.id, Response.ip_address == ip_address):
        raise Conflict("Multiple submissions are not allowed for this form")
