"""Category lookups."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from formdesk.db.models import Category, Form


def list_categories(db: Session) -> list[Category]:
    return list(db.scalars(select(Category).order_by(Category.id.asc())).all())


def list_form_categories(db: Session) -> list[Form]:
    """Every form with its category id (null for general forms)."""
    return list(db.scalars(select(Form).order_by(Form.id.asc())).all())
