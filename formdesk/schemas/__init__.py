"""Pydantic schemas for API request/response models."""

from formdesk.schemas.auth import TokenPayload, UserSession
from formdesk.schemas.categories import CategoryFormItem, CategoryRead
from formdesk.schemas.forms import (
    FormCreate,
    FormPublicRead,
    FormRead,
    FormSummary,
    FormUpdate,
    QuestionCreate,
    QuestionRead,
    QuestionUpdate,
)
from formdesk.schemas.responses import (
    AnswerDescriptor,
    AnswerRead,
    FileUploadAnswer,
    FormBrief,
    ImageUploadAnswer,
    MultiSelectAnswer,
    RespondentRead,
    ResponseRead,
    SubmissionCreated,
    SubmissionResult,
    TextAnswer,
)

__all__ = [
    # Auth
    "TokenPayload",
    "UserSession",
    # Categories
    "CategoryRead",
    "CategoryFormItem",
    # Forms
    "FormCreate",
    "FormPublicRead",
    "FormRead",
    "FormSummary",
    "FormUpdate",
    "QuestionCreate",
    "QuestionRead",
    "QuestionUpdate",
    # Responses
    "AnswerDescriptor",
    "AnswerRead",
    "FileUploadAnswer",
    "FormBrief",
    "ImageUploadAnswer",
    "MultiSelectAnswer",
    "RespondentRead",
    "ResponseRead",
    "SubmissionCreated",
    "SubmissionResult",
    "TextAnswer",
]
