"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: int | None = None,
    form_id: int | None = None,
    response_id: int | None = None,
    question_id: int | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (ids only, never emails or answers)."""
    context: dict[str, Any] = {}
    if user_id is not None:
        context["user_id"] = user_id
    if form_id is not None:
        context["form_id"] = form_id
    if response_id is not None:
        context["response_id"] = response_id
    if question_id is not None:
        context["question_id"] = question_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
