# =============================================================================
# tests/test_storage_service.py - Question Image Storage Tests
# =============================================================================

import io

import pytest
from PIL import Image

from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from core.services.storage_service import StorageService


def png_bytes(width: int = 40, height: int = 30) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


class TestValidation:

    def test_rejects_unknown_type(self):
        with pytest.raises(InvalidFileTypeError):
            StorageService.validate_image("application/pdf", 100)

    def test_rejects_oversized(self):
        with pytest.raises(FileTooLargeError):
            StorageService.validate_image("image/png", 6 * 1024 * 1024)

    def test_dimensions(self):
        assert StorageService.image_dimensions(png_bytes(40, 30)) == (40, 30)
        assert StorageService.image_dimensions(b"not an image") == (None, None)


class TestUpload:

    def test_upload_returns_public_url(self, fake_db):
        bucket = fake_db.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn.example.com/question-images/questions/x.png"

        result = StorageService.upload_question_image(png_bytes(), "diagram.PNG", "image/png")

        path = bucket.upload.call_args.kwargs["path"]
        assert path.startswith("questions/") and path.endswith(".png")
        assert result["url"].endswith("x.png")
        assert (result["width"], result["height"]) == (40, 30)
        assert result["filename"] == path.split("/", 1)[1]

    def test_upload_failure(self, fake_db):
        fake_db.storage.from_.return_value.upload.side_effect = RuntimeError("bucket missing")
        with pytest.raises(StorageUploadError):
            StorageService.upload_question_image(png_bytes(), "a.png", "image/png")


class TestDelete:

    def test_path_from_url(self):
        url = "https://x.supabase.co/storage/v1/object/public/question-images/questions/abc.png"
        assert StorageService.storage_path_from_url(url) == "questions/abc.png"
        assert StorageService.storage_path_from_url("https://example.com/other/abc.png") is None

    def test_delete_removes_path(self, fake_db):
        url = "https://x.supabase.co/storage/v1/object/public/question-images/questions/abc.png"

        assert StorageService.delete_question_image(url) is True
        fake_db.storage.from_.return_value.remove.assert_called_once_with(["questions/abc.png"])

    def test_delete_failure_is_reported(self, fake_db):
        fake_db.storage.from_.return_value.remove.side_effect = RuntimeError("boom")
        url = "https://x.supabase.co/storage/v1/object/public/question-images/questions/abc.png"
        assert StorageService.delete_question_image(url) is False
