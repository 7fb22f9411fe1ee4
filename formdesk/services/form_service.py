"""Form service for the form builder (forms and their questions)."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from formdesk.core.deps import is_owner_or_admin
from formdesk.core.exceptions import Forbidden, NotFound, ValidationError
from formdesk.core.structured_logging import build_log_context
from formdesk.db.models import Answer, Category, Form, Question
from formdesk.schemas.auth import UserSession
from formdesk.schemas.forms import FormCreate, FormUpdate, QuestionCreate, QuestionUpdate

logger = logging.getLogger(__name__)


def list_forms(db: Session, session: UserSession) -> list[Form]:
    stmt = select(Form)
    if not session.is_admin:
        stmt = stmt.where(Form.created_by == session.user_id)
    return list(db.scalars(stmt.order_by(Form.updated_at.desc(), Form.id.desc())).all())


def get_form(db: Session, form_id: int) -> Form | None:
    stmt = select(Form).options(selectinload(Form.questions)).where(Form.id == form_id)
    return db.scalars(stmt).first()


def get_form_for_manage(db: Session, form_id: int, session: UserSession) -> Form:
    """
    Load a form the caller may edit (creator or admin).

    Raises:
        NotFound: form does not exist
        Forbidden: caller is neither creator nor admin
    """
    form = get_form(db, form_id)
    if form is None:
        raise NotFound("Form not found")
    if not is_owner_or_admin(session, form.created_by):
        raise Forbidden("Not authorized to manage this form")
    return form


def _ensure_category(db: Session, category_id: int | None) -> None:
    if category_id is not None and db.get(Category, category_id) is None:
        raise ValidationError(f"Category {category_id} does not exist")


def _apply_question(question: Question, item: QuestionCreate, position: int) -> Question:
    question.question_text = item.question_text
    question.question_type = item.question_type.value
    question.options = item.options
    question.required = item.required
    question.placeholder = item.placeholder
    question.position = position
    question.max_images = item.max_images
    question.checkbox_options = item.checkbox_options
    question.choice_options = item.choice_options
    question.admin_images = item.admin_images
    question.enable_admin_images = item.enable_admin_images
    return question


def _build_questions(items: list[QuestionCreate]) -> list[Question]:
    return [_apply_question(Question(), item, position) for position, item in enumerate(items)]


def _answered_question_ids(db: Session, question_ids: list[int]) -> set[int]:
    if not question_ids:
        return set()
    stmt = select(Answer.question_id).where(Answer.question_id.in_(question_ids)).distinct()
    return set(db.scalars(stmt).all())


def _check_question_changes(db: Session, form: Form, items: list[QuestionUpdate]) -> None:
    """
    Validate a replacement question list against the stored one.

    Raises:
        ValidationError: unknown or repeated question id, or removal of a
            question that already has answers
    """
    kept_ids = [item.id for item in items if item.id is not None]
    if len(kept_ids) != len(set(kept_ids)):
        raise ValidationError("Question ids must be unique")

    existing_ids = {question.id for question in form.questions}
    unknown = set(kept_ids) - existing_ids
    if unknown:
        raise ValidationError(f"Question {min(unknown)} does not belong to this form")

    answered = _answered_question_ids(db, sorted(existing_ids - set(kept_ids)))
    if answered:
        raise ValidationError(
            f"Question {min(answered)} already has answers and cannot be removed"
        )


def _reconcile_questions(form: Form, items: list[QuestionUpdate]) -> None:
    """Edit kept questions in place, add new ones, drop the rest (delete-orphan)."""
    existing = {question.id: question for question in form.questions}
    form.questions = [
        _apply_question(existing[item.id] if item.id is not None else Question(), item, position)
        for position, item in enumerate(items)
    ]


def create_form(db: Session, session: UserSession, data: FormCreate) -> Form:
    _ensure_category(db, data.category_id)
    form = Form(
        title=data.title,
        description=data.description,
        category_id=data.category_id,
        allow_multiple_responses=data.allow_multiple_responses,
        require_email=data.require_email,
        created_by=session.user_id,
    )
    form.questions = _build_questions(data.questions)
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info(
        "form_created",
        extra=build_log_context(user_id=session.user_id, form_id=form.id),
    )
    return form


def update_form(db: Session, form: Form, data: FormUpdate) -> Form:
    """
    Apply a partial update.

    A supplied question list is reconciled by id: listed questions keep their
    rows (so stored answers keep their question), new ones are added and
    unanswered ones left out are removed. Everything is validated before the
    form is touched.
    """
    changes = data.model_dump(exclude_unset=True, exclude={"questions"})
    if "category_id" in changes:
        _ensure_category(db, changes["category_id"])
    if data.questions is not None:
        _check_question_changes(db, form, data.questions)

    for field, value in changes.items():
        if field in {"title", "allow_multiple_responses", "require_email"} and value is None:
            continue
        setattr(form, field, value)

    if data.questions is not None:
        _reconcile_questions(form, data.questions)

    db.commit()
    db.refresh(form)
    return form


def delete_form(db: Session, form: Form) -> None:
    form_id = form.id
    db.delete(form)
    db.commit()
    logger.info("form_deleted", extra=build_log_context(form_id=form_id))
