"""Schemas for response submission and retrieval."""

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from formdesk.utils.serialization import dump_json


class CamelModel(BaseModel):
    """Client-facing models use camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Submitted answer descriptors (tagged variants)
# =============================================================================

class _AnswerDescriptorBase(CamelModel):
    field_uid: int
    type: str | None = None


class TextAnswer(_AnswerDescriptorBase):
    kind: Literal["text"] = "text"
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # Falsy values (null, false, 0, "") store as empty text
        if not value:
            return ""
        if isinstance(value, str):
            return value
        return dump_json(value)


class MultiSelectAnswer(_AnswerDescriptorBase):
    kind: Literal["multi_select"] = "multi_select"
    selections: list[Any] = Field(default_factory=list)


class ImageUploadAnswer(_AnswerDescriptorBase):
    kind: Literal["image_upload"] = "image_upload"
    checkbox_selections: list[Any] = Field(default_factory=list)
    multiple_choice_selection: Any = None

    @field_validator("checkbox_selections", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class FileUploadAnswer(_AnswerDescriptorBase):
    kind: Literal["file_upload"] = "file_upload"


AnswerDescriptor = Union[TextAnswer, MultiSelectAnswer, ImageUploadAnswer, FileUploadAnswer]


# =============================================================================
# Submission result
# =============================================================================

class SubmissionCreated(CamelModel):
    id: int
    form_id: int
    submitted_at: datetime


class SubmissionResult(CamelModel):
    message: str
    response: SubmissionCreated
    answers_processed: int


# =============================================================================
# Response projection
# =============================================================================

class RespondentRead(CamelModel):
    name: str
    email: str


class FormBrief(CamelModel):
    title: str
    description: str | None = None


class AnswerRead(CamelModel):
    question: str | None = None
    type: str | None = None
    answer_text: str | None = None
    image_urls: list[Any] | None = None
    files: list[Any] | None = None
    checkbox_selections: list[Any] | None = None
    multiple_choice_selection: Any = None
    image_responses: list[Any] | None = None


class ResponseRead(CamelModel):
    id: int
    submitted_at: datetime
    respondent: RespondentRead
    answers: list[AnswerRead]
    form: FormBrief
