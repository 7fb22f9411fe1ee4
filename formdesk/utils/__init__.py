"""Utility modules."""

from formdesk.utils.normalization import is_valid_email, normalize_email
from formdesk.utils.serialization import dump_json, load_json

__all__ = [
    # Normalization
    "is_valid_email",
    "normalize_email",
    # Serialization
    "dump_json",
    "load_json",
]
