"""SQLAlchemy ORM models for forms, questions, responses, answers, users and categories."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formdesk.db.base import Base
from formdesk.db.enums import Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Users & Categories
# =============================================================================

class User(Base):
    """An account that builds forms or submits responses while signed in."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    role: Mapped[str] = mapped_column(
        String(20),
        default=Role.USER.value,
        server_default=text(f"'{Role.USER.value}'"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )


class Category(Base):
    """Grouping for forms; forms without a category are 'general' forms."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)


# =============================================================================
# Forms & Questions
# =============================================================================

class Form(Base):
    """A named collection of questions with submission policy flags."""

    __tablename__ = "forms"
    __table_args__ = (
        Index("idx_forms_created_by", "created_by"),
        Index("idx_forms_category", "category_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    allow_multiple_responses: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    require_email: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # Drive folder holding mirrored uploads (created on first mirrored file)
    drive_folder_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    questions: Mapped[list["Question"]] = relationship(
        back_populates="form",
        order_by="Question.position",
        cascade="all, delete-orphan",
    )
    responses: Mapped[list["Response"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
    )
    category: Mapped["Category | None"] = relationship()
    creator: Mapped["User | None"] = relationship(foreign_keys=[created_by])


class Question(Base):
    """One field definition within a form."""

    __tablename__ = "questions"
    __table_args__ = (Index("idx_questions_form", "form_id", "position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(50), nullable=False)
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    required: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    placeholder: Mapped[str | None] = mapped_column(String(500), nullable=True)
    position: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )

    # Image upload questions
    max_images: Mapped[int | None] = mapped_column(Integer, nullable=True)
    checkbox_options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    choice_options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    admin_images: Mapped[list | None] = mapped_column(JSON, nullable=True)
    enable_admin_images: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )

    form: Mapped["Form"] = relationship(back_populates="questions")


# =============================================================================
# Responses & Answers (append-only)
# =============================================================================

class Response(Base):
    """One accepted submission against a form."""

    __tablename__ = "responses"
    __table_args__ = (
        Index("idx_responses_form_email", "form_id", "respondent_email"),
        Index("idx_responses_form_ip", "form_id", "ip_address"),
        Index("idx_responses_submitted_at", "submitted_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    respondent_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Application-side timestamp keeps microsecond ordering on every backend
    submitted_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)

    form: Mapped["Form | None"] = relationship(back_populates="responses")
    user: Mapped["User | None"] = relationship()
    answers: Mapped[list["Answer"]] = relationship(
        back_populates="response",
        order_by="Answer.id",
        cascade="all, delete-orphan",
    )


class Answer(Base):
    """
    One normalized value for one question within one response.

    List/object columns hold JSON text written by the answer normalizer and
    parsed by the response projection.
    """

    __tablename__ = "answers"
    __table_args__ = (Index("idx_answers_response", "response_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    response_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("responses.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True
    )
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_paths: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_responses: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_paths: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_options: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_choices: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_urls: Mapped[str | None] = mapped_column(Text, nullable=True)

    response: Mapped["Response"] = relationship(back_populates="answers")
    question: Mapped["Question | None"] = relationship()
