"""Upload validation and local file storage for inspection media."""

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from inspection_engine.common.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PHOTOS_BUCKET = "inspection-photos"
DOCUMENTS_BUCKET = "driver-documents"

MEDIA_CONTENT_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/webp", "image/heic",
    "video/mp4", "video/quicktime", "video/x-msvideo", "video/webm", "video/x-matroska",
})
DOCUMENT_CONTENT_TYPES = frozenset({
    "application/pdf", "image/jpeg", "image/jpg", "image/png",
})


@dataclass
class Upload:
    """A file received from a client, fully read into memory."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        suffix = PurePosixPath(self.filename or "").suffix.lower().lstrip(".")
        return suffix or "bin"

    @property
    def media_type(self) -> str:
        return "video" if self.content_type.lower().startswith("video/") else "image"


def validate_upload(upload: Upload, allowed: frozenset[str], max_bytes: int) -> None:
    if upload.size == 0:
        raise ValidationError(f"{upload.filename} is empty")
    if upload.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(f"{upload.filename} exceeds the {limit_mb}MB limit")
    if (upload.content_type or "").lower() not in allowed:
        raise ValidationError(
            f"{upload.filename} has unsupported type '{upload.content_type}'"
        )


def validate_batch(uploads: list[Upload], allowed: frozenset[str], max_bytes: int) -> None:
    """Validate every file; raise on the first failure before anything is stored."""
    if not uploads:
        raise ValidationError("No files received")
    for upload in uploads:
        validate_upload(upload, allowed, max_bytes)


class LocalFileStorage:
    """Bucketed file storage under a root directory.

    Stored objects are addressed by ``bucket/relative/path`` strings, which
    is what gets persisted on the inspection rows.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, stored_path: str) -> Path:
        target = (self.root / stored_path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationError("Invalid storage path")
        return target

    def save(self, bucket: str, name: str, data: bytes) -> str:
        stored_path = f"{bucket}/{name}"
        target = self._resolve(stored_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s (%d bytes)", stored_path, len(data))
        return stored_path

    def read(self, stored_path: str) -> bytes:
        target = self._resolve(stored_path)
        if not target.is_file():
            raise NotFoundError(f"File not found: {stored_path}")
        return target.read_bytes()

    def delete(self, stored_path: str) -> bool:
        target = self._resolve(stored_path)
        if not target.exists():
            return False
        target.unlink()
        logger.info("Deleted %s", stored_path)
        return True


def photo_object_name(inspection_id: str, photo_type: str, upload: Upload) -> str:
    return f"{inspection_id}/{photo_type}/{secrets.token_hex(8)}.{upload.extension}"


def document_object_name(inspection_id: str, upload: Upload) -> str:
    return f"{inspection_id}-{secrets.token_hex(8)}.{upload.extension}"
