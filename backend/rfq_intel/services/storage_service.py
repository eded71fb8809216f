"""Storage of uploaded RFQ documents.

Supports two backends selected via ``settings.STORAGE_BACKEND``:

1. **minio**: Uses the MinIO S3‑compatible object storage.
2. **filesystem** (default): Stores files under ``settings.STORAGE_DIRECTORY``.

Documents are stored under an anonymised key (``uploads/<uuid><ext>``);
the original file name is never persisted or logged since RFQ file
names frequently contain customer names.
"""

from __future__ import annotations

import logging
import uuid
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Optional

from minio import Minio
from minio.error import S3Error

from rfq_intel.core.config import settings


logger = logging.getLogger(__name__)


class StorageService:
    """Unified document storage (MinIO or filesystem)."""

    def __init__(self, base_dir: str | None = None, backend: str | None = None) -> None:
        self.backend = (backend or settings.STORAGE_BACKEND or "filesystem").lower()
        if self.backend == "minio":
            self._client = Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=bool(settings.MINIO_USE_SSL),
            )
            self.bucket = settings.MINIO_BUCKET_NAME
            # Ensure bucket exists (idempotent)
            try:
                if not self._client.bucket_exists(self.bucket):
                    self._client.make_bucket(self.bucket)
            except Exception as e:
                logger.warning("[storage] MinIO bucket ensure failed: %s", e)
        else:
            self.backend = "filesystem"
            base_path = Path(base_dir or settings.STORAGE_DIRECTORY)
            if not base_path.is_absolute():
                repo_root = Path(__file__).resolve().parents[3]
                base_path = (repo_root / base_path).resolve()
            self.base_dir = base_path
            self.base_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def anonymised_key(filename: str) -> str:
        suffix = PurePosixPath(filename or "").suffix.lower()
        if not suffix.isascii() or len(suffix) > 10:
            suffix = ""
        return f"uploads/{uuid.uuid4().hex}{suffix}"

    async def save_document(self, contents: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """Persist an uploaded document and return its storage key."""
        if not contents:
            raise RuntimeError("Empty upload payload")
        key = self.anonymised_key(filename)

        if self.backend == "minio":
            try:
                self._client.put_object(
                    self.bucket,
                    key,
                    BytesIO(contents),
                    len(contents),
                    content_type=content_type or "application/octet-stream",
                )
            except Exception as e:  # S3Error or unreachable endpoint
                raise RuntimeError(f"MinIO upload failed: {e}") from e
            logger.info("[storage] MinIO object put: %s size=%d", key, len(contents))
            return key

        path = self.base_dir / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(contents)
        logger.info("[storage] FS saved: %s bytes=%d", key, len(contents))
        return key

    def load_document(self, key: str) -> bytes:
        """Load raw bytes for a stored document by key."""
        if self.backend == "minio":
            try:
                resp = self._client.get_object(self.bucket, key)
            except S3Error as e:
                raise ValueError(f"File not found: {key}") from e
            except Exception as e:
                raise RuntimeError(f"MinIO download failed: {e}") from e
            try:
                return resp.read()
            finally:
                resp.close()
                resp.release_conn()

        try:
            return (self.base_dir / key).read_bytes()
        except FileNotFoundError as e:
            raise ValueError(f"File not found: {key}") from e
