"""Storage for uploaded work files."""

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from backend.app.core.config import settings
from backend.app.core.exceptions import UploadRejectedError
from backend.app.models.work import WorkCategory

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: dict[str, set[str]] = {
    WorkCategory.PHOTOS.value: {".jpg", ".jpeg", ".png", ".pdf"},
    WorkCategory.GRAPHICS.value: {".jpg", ".jpeg", ".png", ".pdf"},
    WorkCategory.VIDEOS.value: {".mp4", ".mov"},
}

UPLOADS_URL_PREFIX = "/uploads"
CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    path: Path
    url: str
    size: int
    content_type: str | None


class UploadStorage:
    """Validates and writes uploads under ``<root>/<category>/``."""

    def __init__(self, root: str | Path | None = None, max_bytes: int | None = None):
        self.root = Path(root or settings.upload_dir)
        self.max_bytes = max_bytes or settings.max_upload_size_bytes

    def validate(self, filename: str | None, category: str) -> str:
        """Return the lowercased extension if the file type fits the category."""
        allowed = ALLOWED_EXTENSIONS.get(category)
        if allowed is None:
            raise UploadRejectedError("Invalid category specified.")
        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            formats = ", ".join(sorted(e.lstrip(".").upper() for e in allowed))
            raise UploadRejectedError(f"Invalid file format. Please use {formats}.")
        return ext

    async def save(self, upload: UploadFile, category: str) -> StoredFile:
        """
        Stream an upload to disk.

        Raises:
            UploadRejectedError: On a disallowed extension or an oversized file
        """
        ext = self.validate(upload.filename, category)
        directory = self.root / category.lower()
        directory.mkdir(parents=True, exist_ok=True)

        name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"
        path = directory / name
        size = 0
        try:
            with path.open("wb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise UploadRejectedError(
                            f"File exceeds the {self.max_bytes // (1024 * 1024)}MB limit"
                        )
                    await run_in_threadpool(out.write, chunk)
        except UploadRejectedError:
            path.unlink(missing_ok=True)
            raise

        if size == 0:
            path.unlink(missing_ok=True)
            raise UploadRejectedError("File is required")

        logger.info(f"[UPLOAD] Stored {path} ({size} bytes)")
        return StoredFile(
            path=path,
            url=f"{UPLOADS_URL_PREFIX}/{category.lower()}/{name}",
            size=size,
            content_type=upload.content_type,
        )

    def remove(self, stored: StoredFile) -> None:
        stored.path.unlink(missing_ok=True)

    def discard(self, url: str | None) -> bool:
        """Delete the file behind an ``/uploads`` URL; other URLs are left alone."""
        prefix = f"{UPLOADS_URL_PREFIX}/"
        if not url or not url.startswith(prefix):
            return False
        path = (self.root / url[len(prefix):]).resolve()
        if self.root.resolve() not in path.parents:
            return False
        path.unlink(missing_ok=True)
        return True
