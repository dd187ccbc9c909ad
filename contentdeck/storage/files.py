"""Local-disk implementation of the upload file transport."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import secrets
import time
from typing import BinaryIO, Iterable

from contentdeck.core.errors import ValidationError
from contentdeck.core.logger import get_logger


CHUNK_SIZE = 1024 * 1024

logger = get_logger("contentdeck.files")


@dataclass(frozen=True)
class StoredFile:
    filename: str
    filesize_bytes: int


class LocalFileStore:
    """Stores uploads under one directory with collision-free names."""

    def __init__(
        self,
        root: Path | str,
        *,
        max_bytes: int = 100 * 1024 * 1024,
        allowed_mime_types: Iterable[str] = ("video/mp4",),
    ) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        configured = Path(root)
        self._root = configured if configured.is_absolute() else Path.cwd() / configured
        self._max_bytes = max_bytes
        self._allowed_mime_types = frozenset(value.strip().lower() for value in allowed_mime_types)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @staticmethod
    def _unique_filename(original_name: str) -> str:
        suffix = Path(original_name or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"

    def _resolve(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename:
            raise ValidationError("Invalid stored filename", detail={"filename": filename})
        return self._root / filename

    def save_upload(self, stream: BinaryIO, *, original_name: str, content_type: str) -> StoredFile:
        normalized_type = (content_type or "").split(";", 1)[0].strip().lower()
        if normalized_type not in self._allowed_mime_types:
            raise ValidationError(
                "Only MP4 videos are allowed",
                detail={"content_type": normalized_type, "allowed": sorted(self._allowed_mime_types)},
            )

        self._root.mkdir(parents=True, exist_ok=True)
        filename = self._unique_filename(original_name)
        target = self._root / filename
        written = 0
        try:
            with target.open("wb") as handle:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise ValidationError(
                            "Video exceeds the maximum upload size",
                            detail={"max_bytes": self._max_bytes},
                        )
                    handle.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise

        if written == 0:
            target.unlink(missing_ok=True)
            raise ValidationError("No video file uploaded")

        logger.info("upload_file_stored", filename=filename, filesize_bytes=written)
        return StoredFile(filename=filename, filesize_bytes=written)

    def delete_file(self, filename: str) -> bool:
        path = self._resolve(filename)
        if not path.exists():
            return False
        path.unlink()
        logger.info("upload_file_deleted", filename=filename)
        return True
