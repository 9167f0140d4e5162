"""Tests for upload validation and local storage."""

import pytest

from inspection_engine.common.exceptions import NotFoundError, ValidationError
from inspection_engine.inspections.media import (
    DOCUMENT_CONTENT_TYPES,
    MEDIA_CONTENT_TYPES,
    PHOTOS_BUCKET,
    LocalFileStorage,
    Upload,
    photo_object_name,
    validate_batch,
    validate_upload,
)

MB = 1024 * 1024


def upload(name="foto.jpg", content_type="image/jpeg", data=b"\xff\xd8\xff"):
    return Upload(filename=name, content_type=content_type, data=data)


class TestUpload:
    def test_media_type(self):
        assert upload().media_type == "image"
        assert upload("v.mp4", "video/mp4").media_type == "video"

    def test_extension(self):
        assert upload("IMG.JPEG").extension == "jpeg"
        assert upload("semextensao").extension == "bin"


class TestValidation:
    def test_accepts_allowed_type(self):
        validate_upload(upload("v.mkv", "video/x-matroska"), MEDIA_CONTENT_TYPES, 50 * MB)

    def test_rejects_type(self):
        with pytest.raises(ValidationError, match="unsupported"):
            validate_upload(upload("a.gif", "image/gif"), MEDIA_CONTENT_TYPES, 50 * MB)

    def test_rejects_oversized(self):
        with pytest.raises(ValidationError, match="5MB"):
            validate_upload(
                upload("doc.pdf", "application/pdf", b"x" * (5 * MB + 1)),
                DOCUMENT_CONTENT_TYPES, 5 * MB,
            )

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            validate_upload(upload(data=b""), MEDIA_CONTENT_TYPES, 50 * MB)

    def test_batch_fails_before_any_file(self):
        batch = [upload(), upload("b.txt", "text/plain")]
        with pytest.raises(ValidationError, match="b.txt"):
            validate_batch(batch, MEDIA_CONTENT_TYPES, 50 * MB)

    def test_empty_batch(self):
        with pytest.raises(ValidationError):
            validate_batch([], MEDIA_CONTENT_TYPES, 50 * MB)


class TestLocalFileStorage:
    def test_save_read_delete(self, tmp_path):
        storage = LocalFileStorage(tmp_path)
        name = photo_object_name("insp-1", "engine", upload())
        path = storage.save(PHOTOS_BUCKET, name, b"abc")
        assert path.startswith("inspection-photos/insp-1/engine/")
        assert storage.read(path) == b"abc"
        assert storage.delete(path) is True
        assert storage.delete(path) is False

    def test_read_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            LocalFileStorage(tmp_path).read("inspection-photos/nada.jpg")

    def test_rejects_path_escape(self, tmp_path):
        with pytest.raises(ValidationError):
            LocalFileStorage(tmp_path / "media").save("..", "fora.txt", b"x")
