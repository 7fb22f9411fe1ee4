"""Baseline migration - users, categories, forms, questions, responses, answers

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the form builder tables."""

    # ==========================================================================
    # Users & Categories
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), server_default=sa.text("'user'"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # ==========================================================================
    # Forms & Questions
    # ==========================================================================
    op.create_table(
        "forms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("allow_multiple_responses", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("require_email", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("drive_folder_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_forms_created_by", "forms", ["created_by"])
    op.create_index("idx_forms_category", "forms", ["category_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("form_id", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(50), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("required", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("placeholder", sa.String(500), nullable=True),
        sa.Column("position", sa.Integer(), server_default=sa.text("0"), nullable=False),

        # Image upload questions
        sa.Column("max_images", sa.Integer(), nullable=True),
        sa.Column("checkbox_options", sa.JSON(), nullable=True),
        sa.Column("choice_options", sa.JSON(), nullable=True),
        sa.Column("admin_images", sa.JSON(), nullable=True),
        sa.Column("enable_admin_images", sa.Boolean(), server_default=sa.text("false"), nullable=False),

        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_questions_form", "questions", ["form_id", "position"])

    # ==========================================================================
    # Responses & Answers
    # ==========================================================================
    op.create_table(
        "responses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("form_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("respondent_email", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_responses_form_email", "responses", ["form_id", "respondent_email"])
    op.create_index("idx_responses_form_ip", "responses", ["form_id", "ip_address"])
    op.create_index("idx_responses_submitted_at", "responses", ["submitted_at"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("response_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=True),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("image_paths", sa.Text(), nullable=True),
        sa.Column("image_responses", sa.Text(), nullable=True),
        sa.Column("file_paths", sa.Text(), nullable=True),
        sa.Column("selected_options", sa.Text(), nullable=True),
        sa.Column("selected_choices", sa.Text(), nullable=True),
        sa.Column("image_urls", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["response_id"], ["responses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_answers_response", "answers", ["response_id"])


def downgrade() -> None:
    op.drop_index("idx_answers_response", table_name="answers")
    op.drop_table("answers")
    op.drop_index("idx_responses_submitted_at", table_name="responses")
    op.drop_index("idx_responses_form_ip", table_name="responses")
    op.drop_index("idx_responses_form_email", table_name="responses")
    op.drop_table("responses")
    op.drop_index("idx_questions_form", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_forms_category", table_name="forms")
    op.drop_index("idx_forms_created_by", table_name="forms")
    op.drop_table("forms")
    op.drop_table("categories")
    op.drop_table("users")
