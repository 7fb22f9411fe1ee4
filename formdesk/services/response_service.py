"""Response submission and retrieval flows."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, selectinload

from formdesk.core.deps import is_owner_or_admin
from formdesk.core.exceptions import Forbidden, NotFound, ValidationError
from formdesk.core.structured_logging import build_log_context
from formdesk.db.models import Answer, Form, Response, User
from formdesk.schemas.auth import UserSession
from formdesk.services import answer_normalizer, submission_gate
from formdesk.services.upload_service import StagedFile
from formdesk.utils.normalization import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

# Form id requesting the cross-form listing (admin only)
GLOBAL_LISTING_FORM_ID = 0


@dataclass
class SubmissionOutcome:
    response: Response
    answers_processed: int


def parse_answers_payload(payload: str | None) -> list[Any]:
    """Decode the multipart ``answers`` field (absent means no answers)."""
    if payload is None or payload.strip() == "":
        return []
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid answers JSON") from exc
    if not isinstance(decoded, list):
        raise ValidationError("answers must be a JSON array")
    return decoded


def get_form_or_404(db: Session, form_id: int) -> Form:
    form = db.get(Form, form_id)
    if form is None:
        raise NotFound("Form not found")
    return form


def submit_response(
    db: Session,
    *,
    form_id: int,
    answers_payload: str | None,
    email: str | None,
    user_id: int | None,
    user_email: str | None,
    ip_address: str | None,
    user_agent: str | None,
    staged: list[StagedFile],
) -> SubmissionOutcome:
    """
    Admit a submission and persist its Response and Answers.

    The gate runs before any write. Response and Answers commit together;
    individual answers that fail are skipped (see answer_normalizer).

    Raises:
        NotFound: form does not exist
        ValidationError: malformed answers payload or email, or email required
        Conflict: duplicate submission under the form's policy
    """
    form = get_form_or_404(db, form_id)
    raw_answers = parse_answers_payload(answers_payload)

    email = normalize_email(email)
    if email and not is_valid_email(email):
        raise ValidationError("Invalid email address")
    user_email = normalize_email(user_email)

    submission_gate.check_submission_allowed(db, form, email=email, ip_address=ip_address)

    user = db.get(User, user_id) if user_id is not None else None

    try:
        response = Response(
            form_id=form.id,
            user_id=user.id if user else None,
            respondent_email=email or user_email,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
        )
        db.add(response)
        db.flush()

        processed = answer_normalizer.normalize_answers(
            db,
            form=form,
            response=response,
            raw_answers=raw_answers,
            staged=staged,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(response)
    logger.info(
        "response_submitted",
        extra=build_log_context(form_id=form.id, response_id=response.id)
        | {"answers_submitted": len(raw_answers), "answers_processed": processed},
    )
    return SubmissionOutcome(response=response, answers_processed=processed)


def list_responses(db: Session, form_id: int, session: UserSession) -> list[Response]:
    """
    Responses for one form (creator or admin), or for every form when
    ``form_id`` is the global sentinel (admin only), newest first.

    Raises:
        Forbidden: caller is neither creator nor admin
        NotFound: form does not exist
    """
    stmt = select(Response).options(
        selectinload(Response.answers).joinedload(Answer.question),
        joinedload(Response.user),
        joinedload(Response.form),
    )

    if form_id == GLOBAL_LISTING_FORM_ID:
        if not session.is_admin:
            raise Forbidden("Not authorized to list responses across forms")
    else:
        form = get_form_or_404(db, form_id)
        if not is_owner_or_admin(session, form.created_by):
            raise Forbidden("Not authorized to view responses for this form")
        stmt = stmt.where(Response.form_id == form.id)

    stmt = stmt.order_by(Response.submitted_at.desc(), Response.id.desc())
    return list(db.scalars(stmt).unique().all())
