"""Binary storage for uploaded images."""

from .blob_storage import BlobStorage, StoredBlob

__all__ = ["BlobStorage", "StoredBlob"]
