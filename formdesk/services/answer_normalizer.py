"""Turn submitted answer descriptors (plus their staged files) into Answer rows."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from formdesk.core.structured_logging import build_log_context
from formdesk.db.enums import QuestionType
from formdesk.db.models import Answer, Form, Question, Response
from formdesk.schemas.responses import (
    AnswerDescriptor,
    FileUploadAnswer,
    ImageUploadAnswer,
    MultiSelectAnswer,
    TextAnswer,
)
from formdesk.services.upload_service import StagedFile
from formdesk.utils.serialization import dump_json

logger = logging.getLogger(__name__)


def parse_answer_descriptor(raw: Any) -> AnswerDescriptor:
    """
    Pick the answer variant for a raw descriptor.

    The declared ``type`` wins for uploads; any other descriptor whose
    ``text`` is a list is a multi-select, everything else is plain text.

    Raises:
        ValueError: not an object, or fields fail validation
    """
    if not isinstance(raw, dict):
        raise ValueError("Answer descriptor must be an object")

    declared = raw.get("type")
    if declared == QuestionType.IMAGE_UPLOAD.value:
        return ImageUploadAnswer.model_validate(raw)
    if declared == QuestionType.FILE_UPLOAD.value:
        return FileUploadAnswer.model_validate(raw)
    if isinstance(raw.get("text"), list):
        return MultiSelectAnswer.model_validate({**raw, "selections": raw["text"]})
    return TextAnswer.model_validate(raw)


def upload_field_prefix(descriptor: AnswerDescriptor) -> str | None:
    """Multipart field-name prefix carrying files for this descriptor."""
    if isinstance(descriptor, ImageUploadAnswer):
        return f"image_{descriptor.field_uid}_"
    if isinstance(descriptor, FileUploadAnswer):
        return f"file_{descriptor.field_uid}_"
    return None


def files_for_descriptor(
    descriptor: AnswerDescriptor, staged: list[StagedFile]
) -> list[StagedFile]:
    prefix = upload_field_prefix(descriptor)
    if prefix is None:
        return []
    return [item for item in staged if item.field_name.startswith(prefix)]


def build_answer(
    descriptor: AnswerDescriptor,
    *,
    response_id: int,
    question_id: int,
    staged: list[StagedFile],
) -> Answer:
    """Map one descriptor onto the Answer columns its variant populates."""
    answer = Answer(response_id=response_id, question_id=question_id)

    if isinstance(descriptor, ImageUploadAnswer):
        files = files_for_descriptor(descriptor, staged)
        if files:
            answer.image_urls = dump_json([item.url for item in files])
            answer.image_paths = dump_json([item.stored_path for item in files])
        answer.image_responses = dump_json(descriptor.checkbox_selections)
        answer.selected_choices = dump_json(descriptor.multiple_choice_selection)
    elif isinstance(descriptor, FileUploadAnswer):
        files = files_for_descriptor(descriptor, staged)
        if files:
            answer.file_paths = dump_json([item.stored_path for item in files])
            # Clients read file links from the text column
            answer.answer_text = dump_json([item.url for item in files])
    elif isinstance(descriptor, MultiSelectAnswer):
        answer.selected_options = dump_json(descriptor.selections)
    else:
        answer.answer_text = descriptor.text

    return answer


def _resolve_question(db: Session, form: Form, field_uid: int) -> Question | None:
    question = db.get(Question, field_uid)
    if question is None or question.form_id != form.id:
        return None
    return question


def normalize_answers(
    db: Session,
    *,
    form: Form,
    response: Response,
    raw_answers: list[Any],
    staged: list[StagedFile],
) -> int:
    """
    Persist one Answer per descriptor whose question exists on ``form``.

    Each Answer is written inside its own SAVEPOINT: a failing descriptor is
    rolled back and logged while the rest of the batch continues.

    Returns:
        Number of Answer rows written.
    """
    processed = 0
    for raw in raw_answers:
        field_uid = raw.get("fieldUid") if isinstance(raw, dict) else None
        try:
            descriptor = parse_answer_descriptor(raw)
            question = _resolve_question(db, form, descriptor.field_uid)
            if question is None:
                logger.warning(
                    "answer_question_not_found",
                    extra=build_log_context(form_id=form.id, response_id=response.id)
                    | {"field_uid": descriptor.field_uid},
                )
                continue

            with db.begin_nested():
                db.add(
                    build_answer(
                        descriptor,
                        response_id=response.id,
                        question_id=question.id,
                        staged=staged,
                    )
                )
            processed += 1
        except Exception:
            logger.warning(
                "answer_normalization_failed",
                extra=build_log_context(form_id=form.id, response_id=response.id)
                | {"field_uid": field_uid},
                exc_info=True,
            )
    return processed
