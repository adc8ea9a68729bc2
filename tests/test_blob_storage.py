from pathlib import Path

import pytest

from libs.core import NotFoundError, ValidationError
from libs.storage import BlobStorage


def test_save_and_open(tmp_path: Path) -> None:
    storage = BlobStorage(tmp_path, public_url="https://app.example.com/")
    blob = storage.save("u1", b"img", "image/png", "photo.PNG")

    assert blob.storage_path.startswith("entries/u1/")
    assert blob.storage_path.endswith(".png")
    assert blob.url == f"https://app.example.com/media/{blob.storage_path}"
    assert storage.open(blob.storage_path).read_bytes() == b"img"


def test_extension_from_content_type(tmp_path: Path) -> None:
    storage = BlobStorage(tmp_path)
    assert storage.save("u1", b"x", "image/png").storage_path.endswith(".png")
    assert storage.save("u1", b"x", "").storage_path.endswith(".jpg")


def test_open_missing(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        BlobStorage(tmp_path).open("entries/u1/nothing.jpg")


def test_open_rejects_traversal(tmp_path: Path) -> None:
    root = tmp_path / "vault"
    root.mkdir()
    (tmp_path / "secret.txt").write_text("s")
    with pytest.raises(ValidationError):
        BlobStorage(root).open("../secret.txt")
