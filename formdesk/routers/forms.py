"""Form administration endpoints (bearer auth) plus the public form read."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from formdesk.core.deps import get_current_session, get_db
from formdesk.core.exceptions import NotFound
from formdesk.schemas.auth import UserSession
from formdesk.schemas.forms import (
    FormCreate,
    FormPublicRead,
    FormRead,
    FormSummary,
    FormUpdate,
)
from formdesk.services import form_service

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("", response_model=list[FormSummary])
def list_forms(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """List forms (admins see every form, other users their own)."""
    return form_service.list_forms(db, session)


@router.post("", response_model=FormRead, status_code=201)
def create_form(
    data: FormCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return form_service.create_form(db, session, data)


@router.get("/{form_id}/public", response_model=FormPublicRead)
def get_public_form(form_id: int, db: Session = Depends(get_db)):
    """Form and questions for the submission page (no auth)."""
    form = form_service.get_form(db, form_id)
    if form is None:
        raise NotFound("Form not found")
    return form


@router.get("/{form_id}", response_model=FormRead)
def get_form(
    form_id: int,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return form_service.get_form_for_manage(db, form_id, session)


@router.patch("/{form_id}", response_model=FormRead)
def update_form(
    form_id: int,
    data: FormUpdate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    form = form_service.get_form_for_manage(db, form_id, session)
    return form_service.update_form(db, form, data)


@router.delete("/{form_id}", status_code=204)
def delete_form(
    form_id: int,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    form = form_service.get_form_for_manage(db, form_id, session)
    form_service.delete_form(db, form)
    return Response(status_code=204)
