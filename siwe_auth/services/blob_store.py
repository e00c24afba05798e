"""
Avatar blob storage.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Protocol

from siwe_auth.core.errors import StorageError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def upload(self, path: str, data: bytes, content_type: str) -> None: ...

    def remove(self, paths: Iterable[str]) -> None: ...

    def public_url(self, path: str) -> str: ...


class LocalBlobStore:
    """Stores blobs under a directory that the app serves as static files."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"Blob path escapes store root: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.error("Blob upload failed", extra={"path": path, "error": str(exc)})
            raise StorageError("Blob store unavailable") from exc

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            try:
                self._resolve(path).unlink(missing_ok=True)
            except OSError as exc:
                # a stale avatar left behind does not break the update
                logger.warning("Blob removal failed", extra={"path": path, "error": str(exc)})

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"
