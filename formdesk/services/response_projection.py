"""Reshape stored Response/Answer rows into the client-facing view."""

from __future__ import annotations

import logging
from typing import Any

from formdesk.db.models import Answer, Response
from formdesk.schemas.responses import (
    AnswerRead,
    FormBrief,
    RespondentRead,
    ResponseRead,
)
from formdesk.utils.serialization import load_json

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"
UNKNOWN_EMAIL = "N/A"
UNTITLED_FORM = FormBrief(title="Untitled form", description="No description")


def _load_list(raw: str | None, field: str) -> list[Any] | None:
    value = load_json(raw, field=field)
    if value is None or isinstance(value, list):
        return value
    logger.warning("stored_json_not_a_list", extra={"field": field})
    return None


def project_respondent(response: Response) -> RespondentRead:
    if response.user is not None:
        return RespondentRead(name=response.user.name, email=response.user.email)
    return RespondentRead(
        name=ANONYMOUS_NAME,
        email=response.respondent_email or UNKNOWN_EMAIL,
    )


def project_answer(answer: Answer) -> AnswerRead:
    question = answer.question
    return AnswerRead(
        question=question.question_text if question else None,
        type=question.question_type if question else None,
        answer_text=answer.answer_text or None,
        image_urls=_load_list(answer.image_urls, "image_urls"),
        files=_load_list(answer.file_paths, "file_paths"),
        checkbox_selections=_load_list(answer.selected_options, "selected_options"),
        multiple_choice_selection=load_json(answer.selected_choices, field="selected_choices"),
        image_responses=_load_list(answer.image_responses, "image_responses"),
    )


def project_form(response: Response) -> FormBrief:
    form = response.form
    if form is None:
        return UNTITLED_FORM.model_copy()
    return FormBrief(title=form.title, description=form.description)


def project_response(response: Response) -> ResponseRead:
    return ResponseRead(
        id=response.id,
        submitted_at=response.submitted_at,
        respondent=project_respondent(response),
        answers=[project_answer(answer) for answer in response.answers],
        form=project_form(response),
    )
