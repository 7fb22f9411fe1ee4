"""Upload staging: validate multipart file parts and write them under unique names."""

from __future__ import annotations

import logging
import os
import secrets
import shutil
import time
from dataclasses import dataclass
from os import SEEK_END
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from formdesk.core.config import settings
from formdesk.core.exceptions import PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPE_PREFIXES = ("image/", "application/", "text/", "video/", "audio/")
DEFAULT_MEDIA_TYPE = "application/octet-stream"
_COPY_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class StagedFile:
    """A file part written to the staging directory."""

    field_name: str
    stored_name: str
    stored_path: str
    original_name: str
    mime_type: str
    size: int
    url: str


def ensure_upload_dir(upload_dir: str | os.PathLike | None = None) -> Path:
    """Create the staging directory if it is missing (idempotent)."""
    path = Path(upload_dir or settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def generate_stored_name(original_name: str | None) -> str:
    """Millisecond timestamp + random suffix, keeping the original extension."""
    ext = os.path.splitext(original_name or "")[1]
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def build_public_url(stored_name: str) -> str:
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{stored_name}"


def is_allowed_media_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.lower().startswith(ALLOWED_MEDIA_TYPE_PREFIXES)


def _declared_type(file: UploadFile) -> str:
    # Parts sent without a Content-Type are generic binary
    return file.content_type or DEFAULT_MEDIA_TYPE


async def get_upload_file_size(file: UploadFile) -> int:
    """Read size from the underlying file object without loading into memory."""

    def _get_size() -> int:
        stream = file.file
        original_pos = stream.tell()
        try:
            stream.seek(0, SEEK_END)
            return stream.tell()
        finally:
            stream.seek(original_pos)

    return await run_in_threadpool(_get_size)


def _write_part(file: UploadFile, destination: Path) -> None:
    file.file.seek(0)
    with open(destination, "wb") as out:
        shutil.copyfileobj(file.file, out, _COPY_CHUNK_BYTES)


async def stage_uploads(
    parts: list[tuple[str, UploadFile]],
    *,
    upload_dir: str | os.PathLike | None = None,
    max_size_bytes: int | None = None,
) -> list[StagedFile]:
    """
    Validate then persist every file part of a request.

    All parts are checked (media type, size) before any byte is written, so
    a rejected request leaves nothing behind. Results keep arrival order.

    Raises:
        UnsupportedMediaType: a part's declared type is outside the allowlist
        PayloadTooLarge: a part exceeds the per-file ceiling
    """
    if not parts:
        return []

    limit = max_size_bytes if max_size_bytes is not None else settings.MAX_UPLOAD_SIZE_BYTES
    sizes: list[int] = []
    for field_name, file in parts:
        if not is_allowed_media_type(_declared_type(file)):
            raise UnsupportedMediaType(f"File type not allowed: {file.content_type} ({field_name})")
        size = await get_upload_file_size(file)
        if size > limit:
            raise PayloadTooLarge(
                f"File exceeds the {limit // (1024 * 1024)} MB limit ({field_name})"
            )
        sizes.append(size)

    target_dir = ensure_upload_dir(upload_dir)
    staged: list[StagedFile] = []
    try:
        for (field_name, file), size in zip(parts, sizes):
            stored_name = generate_stored_name(file.filename)
            destination = target_dir / stored_name
            await run_in_threadpool(_write_part, file, destination)
            staged.append(
                StagedFile(
                    field_name=field_name,
                    stored_name=stored_name,
                    stored_path=str(destination),
                    original_name=file.filename or "",
                    mime_type=_declared_type(file),
                    size=size,
                    url=build_public_url(stored_name),
                )
            )
    except Exception:
        discard_staged_files(staged)
        raise

    logger.info("uploads_staged", extra={"file_count": len(staged)})
    return staged


def discard_staged_files(staged: list[StagedFile]) -> None:
    """Remove staged files whose submission was never admitted."""
    for item in staged:
        try:
            Path(item.stored_path).unlink(missing_ok=True)
        except OSError:
            logger.warning("staged_file_cleanup_failed", exc_info=True)
