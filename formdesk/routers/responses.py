"""Response submission and retrieval endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from formdesk.core.config import settings
from formdesk.core.deps import get_client_ip, get_current_session, get_db, get_drive_client
from formdesk.core.rate_limit import limiter
from formdesk.core.structured_logging import build_log_context
from formdesk.schemas.auth import UserSession
from formdesk.schemas.responses import ResponseRead, SubmissionCreated, SubmissionResult
from formdesk.services import drive_service, response_service, upload_service
from formdesk.services.response_projection import project_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["responses"])


def _text_field(form_data, name: str) -> str | None:
    value = form_data.get(name)
    if value is None or isinstance(value, UploadFile):
        return None
    return value


def _parse_user_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.post("/{form_id}/responses", status_code=201, response_model=SubmissionResult)
@limiter.limit(f"{settings.RATE_LIMIT_PUBLIC_FORMS}/minute")
async def submit_response(
    form_id: int,
    request: Request,
    db: Session = Depends(get_db),
    drive_client=Depends(get_drive_client),
):
    """
    Accept a multipart submission.

    Every file part is staged regardless of field name; answer descriptors
    claim theirs through the ``image_<fieldUid>_`` / ``file_<fieldUid>_``
    prefixes.
    """
    async with request.form() as form_data:
        parts = [
            (name, value)
            for name, value in form_data.multi_items()
            if isinstance(value, UploadFile)
        ]
        staged = await upload_service.stage_uploads(parts)

        try:
            outcome = response_service.submit_response(
                db,
                form_id=form_id,
                answers_payload=_text_field(form_data, "answers"),
                email=_text_field(form_data, "email"),
                user_id=_parse_user_id(_text_field(form_data, "userId")),
                user_email=_text_field(form_data, "userEmail"),
                ip_address=get_client_ip(request),
                user_agent=request.headers.get("user-agent"),
                staged=staged,
            )
        except Exception:
            upload_service.discard_staged_files(staged)
            raise

    if drive_client is not None and staged:
        try:
            await run_in_threadpool(
                drive_service.mirror_staged_files,
                db,
                drive_client,
                outcome.response.form,
                staged,
            )
        except Exception:
            logger.exception(
                "drive_mirror_failed",
                extra=build_log_context(form_id=form_id, response_id=outcome.response.id),
            )

    response = outcome.response
    return SubmissionResult(
        message="Response submitted successfully",
        response=SubmissionCreated(
            id=response.id,
            form_id=response.form_id,
            submitted_at=response.submitted_at,
        ),
        answers_processed=outcome.answers_processed,
    )


@router.get("/{form_id}/responses", response_model=list[ResponseRead])
@limiter.limit(f"{settings.RATE_LIMIT_API}/minute")
def list_responses(
    form_id: int,
    request: Request,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Responses for a form, newest first.

    ``form_id`` 0 lists responses across every form (admin only).
    """
    responses = response_service.list_responses(db, form_id, session)
    return [project_response(response) for response in responses]
