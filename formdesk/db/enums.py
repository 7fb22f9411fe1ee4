"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - USER: Builds and reviews their own forms
    - ADMIN: Reviews every form, including the cross-form response listing
    """

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class QuestionType(str, Enum):
    """Question kinds; the kind decides which Answer columns get populated."""

    SHORT_TEXT = "short_text"
    PARAGRAPH = "paragraph"
    CHECKBOX = "checkbox"
    MULTIPLE_CHOICE = "multiple_choice"
    DROPDOWN = "dropdown"
    DATE = "date"
    IMAGE_UPLOAD = "image_upload"
    FILE_UPLOAD = "file_upload"
