"""Public category listings."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formdesk.core.deps import get_db
from formdesk.schemas.categories import CategoryFormItem, CategoryRead
from formdesk.services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryRead])
def list_categories(db: Session = Depends(get_db)):
    return category_service.list_categories(db)


@router.get("/forms", response_model=list[CategoryFormItem])
def list_category_forms(db: Session = Depends(get_db)):
    """Every form with its category id (null for general forms)."""
    return category_service.list_form_categories(db)
