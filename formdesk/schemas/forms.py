"""Schemas for form administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from formdesk.db.enums import QuestionType


class QuestionCreate(BaseModel):
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType
    options: list[str] | None = None
    required: bool = False
    placeholder: str | None = Field(None, max_length=500)
    max_images: int | None = Field(None, ge=1)
    checkbox_options: list[str] | None = None
    choice_options: list[str] | None = None
    admin_images: list[str] | None = None
    enable_admin_images: bool = False


class QuestionRead(QuestionCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int


class FormCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category_id: int | None = None
    allow_multiple_responses: bool = False
    require_email: bool = False
    questions: list[QuestionCreate] = Field(default_factory=list)


class QuestionUpdate(QuestionCreate):
    # Existing question to keep (and edit); omitted for new questions
    id: int | None = None


class FormUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category_id: int | None = None
    allow_multiple_responses: bool | None = None
    require_email: bool | None = None
    # Full ordered question list when present; questions left out are removed
    questions: list[QuestionUpdate] | None = None


class FormSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    category_id: int | None
    allow_multiple_responses: bool
    require_email: bool
    created_by: int | None
    created_at: datetime
    updated_at: datetime


class FormRead(FormSummary):
    description: str | None
    questions: list[QuestionRead]


class FormPublicRead(BaseModel):
    """Form as rendered on the public submission page."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    require_email: bool
    questions: list[QuestionRead]
