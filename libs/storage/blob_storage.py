from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from uuid import uuid4

from libs.core.exceptions import NotFoundError, ValidationError


@dataclass
class StoredBlob:
    """Location of a saved upload."""

    url: str
    storage_path: str


class BlobStorage:
    """File system based storage for uploaded images.

    Files live under ``<root>/entries/<owner>/<uuid>.<ext>``; the returned
    URL points at the ``/media`` route serving them.
    """

    def __init__(self, root_dir: Path, public_url: str = "") -> None:
        self.root_dir = Path(root_dir)
        self.public_url = public_url.rstrip("/")
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # public API
    def save(
        self,
        owner_id: str,
        data: bytes,
        content_type: str,
        filename: str = "",
    ) -> StoredBlob:
        ext = PurePosixPath(filename).suffix.lstrip(".").lower()
        if not ext:
            guessed = mimetypes.guess_extension(content_type or "") or ".jpg"
            ext = guessed.lstrip(".")
        storage_path = f"entries/{owner_id}/{uuid4()}.{ext}"

        path = self.root_dir / storage_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self.logger.info(
            "blob_saved",
            extra={"owner_id": owner_id, "storage_path": storage_path, "size": len(data)},
        )
        return StoredBlob(url=self.url_for(storage_path), storage_path=storage_path)

    def url_for(self, storage_path: str) -> str:
        return f"{self.public_url}/media/{storage_path}"

    def open(self, storage_path: str) -> Path:
        """Return the on-disk path of a stored blob."""

        root = self.root_dir.resolve()
        path = (root / storage_path).resolve()
        if root not in path.parents:
            raise ValidationError("Invalid storage path", field="path")
        if not path.is_file():
            raise NotFoundError(f"Blob {storage_path} not found")
        return path


__all__ = ["BlobStorage", "StoredBlob"]
