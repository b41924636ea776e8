from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from resumeforge.config import Settings, get_settings
from resumeforge.errors import BadRequestError, InternalError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


@dataclass
class StoredFile:
    filename: str
    original_name: str
    url: str
    size: int


class UploadStore:
    """Writes uploaded files under ``upload_dir/YYYY/MM/DD``."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.root = Path(self.settings.upload_dir)

    def validate(self, *, size: int, content_type: str | None) -> None:
        limit = self.settings.max_file_size
        if size > limit:
            raise BadRequestError(f"file exceeds the size limit ({limit / 1024 / 1024:g}MB)")
        if content_type not in self.settings.allowed_file_type_list:
            raise BadRequestError("unsupported file type")

    def read(self, stream: BinaryIO) -> bytes:
        """Read the upload, stopping one byte past the size limit."""
        return stream.read(self.settings.max_file_size + 1)

    def daily_dir(self, now: datetime | None = None) -> Path:
        now = now or datetime.now()
        path = self.root / f"{now.year:04d}" / f"{now.month:02d}" / f"{now.day:02d}"
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Could not create upload directory %s", path)
            raise InternalError("file upload failed") from exc
        return path

    def save(self, *, content: bytes, original_name: str, content_type: str | None) -> StoredFile:
        self.validate(size=len(content), content_type=content_type)

        directory = self.daily_dir()
        filename = f"{uuid.uuid4()}{PurePosixPath(original_name or '').suffix.lower()}"
        target = directory / filename
        try:
            target.write_bytes(content)
        except OSError as exc:
            logger.exception("Could not write upload %s", target)
            raise InternalError("file upload failed") from exc

        relative = target.relative_to(self.root).as_posix()
        url = f"{self.settings.site_url.rstrip('/')}{UPLOAD_URL_PREFIX}/{relative}"
        logger.info("Stored upload %s (%s bytes)", relative, len(content))
        return StoredFile(filename=filename, original_name=original_name, url=url, size=len(content))
