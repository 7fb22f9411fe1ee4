"""JSON text columns: write side for the answer normalizer, read side for projections."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def dump_json(value: Any) -> str:
    """Serialize a list/object/scalar to JSON text (non-ASCII kept as-is)."""
    return json.dumps(value, ensure_ascii=False)


def load_json(raw: str | None, *, field: str, default: Any = None) -> Any:
    """
    Parse a stored JSON text column.

    Absent values and malformed JSON both yield ``default``; malformed
    values are logged so bad rows can be found without failing the read.
    """
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("stored_json_malformed", extra={"field": field})
        return default
