"""Per-client request limits (slowapi)."""

import logging
import os

from slowapi import Limiter
from starlette.requests import Request

from formdesk.core.config import settings
from formdesk.core.deps import get_client_ip

logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")


def client_key(request: Request) -> str:
    """Limit by the same address the submission gate records."""
    return get_client_ip(request) or "unknown"


def _storage_uri() -> str:
    """Redis when configured and reachable; otherwise per-process memory."""
    if IS_TESTING or not settings.REDIS_URL:
        return "memory://"
    try:
        import redis

        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    except Exception as e:
        logger.warning(f"Redis unavailable for rate limiting, using in-memory: {e}")
        return "memory://"
    return settings.REDIS_URL


limiter = Limiter(
    key_func=client_key,
    storage_uri=_storage_uri(),
    enabled=not IS_TESTING,
)
