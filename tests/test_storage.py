"""Storage backend tests."""

from __future__ import annotations

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from werkzeug.datastructures import FileStorage

from storage import LocalStorage, ObjectStorage, build_storage, display_url


def test_local_storage_save_and_delete(tmp_path):
    storage = LocalStorage(str(tmp_path))
    upload = FileStorage(stream=BytesIO(b"pixels"), filename="photo.png")

    reference = storage.save(upload, "classifieds/7", "../photo one.png")

    assert reference == "classifieds/7/photo_one.png"
    assert (tmp_path / reference).read_bytes() == b"pixels"
    assert storage.exists(reference)

    storage.delete(reference)
    assert not storage.exists(reference)
    storage.delete(reference)


def test_local_storage_accepts_plain_streams(tmp_path):
    storage = LocalStorage(str(tmp_path))

    reference = storage.save(BytesIO(b"raw"), "misc", "raw.bin")

    with storage.open(reference) as handle:
        assert handle.read() == b"raw"


def test_local_storage_delete_directory(tmp_path):
    storage = LocalStorage(str(tmp_path))
    storage.save(BytesIO(b"a"), "classifieds/1", "a.png")
    storage.save(BytesIO(b"b"), "classifieds/1", "b.png")

    storage.delete_directory("classifieds/1")

    assert not (tmp_path / "classifieds" / "1").exists()
    storage.delete_directory("classifieds/1")


def test_local_storage_rejects_paths_outside_root(tmp_path):
    storage = LocalStorage(str(tmp_path / "uploads"))

    with pytest.raises(ValueError):
        storage.delete("../outside.txt")
    with pytest.raises(ValueError):
        storage.save(BytesIO(b"x"), "classifieds/1", "...")


@pytest.mark.parametrize(
    "reference, expected",
    [
        ("classifieds/1/a.png", "/api/uploads/classifieds/1/a.png"),
        ("https://cdn.example.com/classifieds/1/a.png", "https://cdn.example.com/classifieds/1/a.png"),
        (None, None),
        ("", None),
    ],
)
def test_display_url(reference, expected):
    assert display_url(reference) == expected


@pytest.mark.parametrize("public_base", [None, "", "cdn.example.com"])
def test_bucket_requires_public_base_url(monkeypatch, public_base):
    monkeypatch.setattr("storage.object_storage.boto3.client", MagicMock())

    with pytest.raises(ValueError, match="OBJECT_STORAGE_PUBLIC_BASE"):
        build_storage(
            {"OBJECT_STORAGE_BUCKET": "ads", "OBJECT_STORAGE_PUBLIC_BASE": public_base}
        )
    with pytest.raises(ValueError):
        ObjectStorage(bucket="ads", public_base=public_base or "", client=MagicMock())


def test_build_storage_prefers_bucket(tmp_path, monkeypatch):
    monkeypatch.setattr("storage.object_storage.boto3.client", MagicMock())

    local = build_storage({"UPLOAD_DIR": str(tmp_path)})
    remote = build_storage(
        {
            "OBJECT_STORAGE_BUCKET": "ads",
            "OBJECT_STORAGE_PUBLIC_BASE": "https://cdn.example.com/",
        }
    )

    assert isinstance(local, LocalStorage)
    assert isinstance(remote, ObjectStorage)
    assert remote.public_base == "https://cdn.example.com"


def test_object_storage_uploads_public_objects():
    client = MagicMock()
    storage = ObjectStorage(bucket="ads", public_base="https://cdn.example.com", client=client)
    upload = FileStorage(stream=BytesIO(b"pixels"), filename="photo.png")

    reference = storage.save(upload, "classifieds/3", "photo.png")

    assert reference == "https://cdn.example.com/classifieds/3/photo.png"
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "ads"
    assert kwargs["Key"] == "classifieds/3/photo.png"
    assert kwargs["Body"] == b"pixels"
    assert kwargs["ACL"] == "public-read"
    assert kwargs["ContentType"] == "image/png"


def test_object_storage_delete_ignores_foreign_references():
    client = MagicMock()
    storage = ObjectStorage(bucket="ads", public_base="https://cdn.example.com", client=client)

    storage.delete("https://cdn.example.com/classifieds/3/photo.png")
    storage.delete("https://elsewhere.example.com/classifieds/3/photo.png")

    client.delete_object.assert_called_once_with(Bucket="ads", Key="classifieds/3/photo.png")


def test_object_storage_delete_directory_removes_every_page():
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [
        {"Contents": [{"Key": "classifieds/3/a.png"}, {"Key": "classifieds/3/b.png"}]},
        {},
    ]
    storage = ObjectStorage(bucket="ads", public_base="https://cdn.example.com", client=client)

    storage.delete_directory("classifieds/3")

    client.get_paginator.return_value.paginate.assert_called_once_with(
        Bucket="ads", Prefix="classifieds/3/"
    )
    client.delete_objects.assert_called_once_with(
        Bucket="ads",
        Delete={"Objects": [{"Key": "classifieds/3/a.png"}, {"Key": "classifieds/3/b.png"}]},
    )
