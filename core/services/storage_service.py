# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles question image upload and cleanup with Supabase Storage.
# Images live in the question-images bucket under questions/{uuid}.{ext}.
# =============================================================================

import io
import logging
from urllib.parse import urlparse
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError

logger = logging.getLogger(__name__)

# Path prefix inside the bucket
IMAGE_PREFIX = "questions"


class StorageService:
    """
    Service for Supabase Storage operations.

    Validates question images and passes them through to storage.
    """

    @staticmethod
    def validate_image(content_type: str | None, size: int) -> None:
        """
        Check MIME type and size against settings.

        Raises:
            InvalidFileTypeError: If the type isn't an allowed image type
            FileTooLargeError: If the file exceeds MAX_IMAGE_SIZE_MB
        """
        allowed = settings.allowed_image_types_list
        if (content_type or "").lower() not in allowed:
            raise InvalidFileTypeError(content_type or "unknown", allowed)

        if size > settings.max_image_size_bytes:
            raise FileTooLargeError(size / (1024 * 1024), settings.MAX_IMAGE_SIZE_MB)

    @staticmethod
    def image_dimensions(file_content: bytes) -> tuple[int | None, int | None]:
        """Width and height of an image, or (None, None) if unreadable."""
        try:
            with Image.open(io.BytesIO(file_content)) as img:
                width, height = img.size
                return width, height
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Could not determine image dimensions: {e}")
            return None, None

    @staticmethod
    def upload_question_image(
        file_content: bytes,
        filename: str,
        content_type: str,
    ) -> dict:
        """
        Upload a question image and return its public URL.

        Args:
            file_content: Image bytes
            filename: Original filename (used for the extension)
            content_type: MIME type reported by the client

        Returns:
            Dict with url, width, height, filename, size, type

        Raises:
            InvalidFileTypeError / FileTooLargeError: If validation fails
            StorageUploadError: If upload fails
        """
        StorageService.validate_image(content_type, len(file_content))

        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
        unique_name = f"{uuid4()}.{extension}"
        path = f"{IMAGE_PREFIX}/{unique_name}"

        client = SupabaseClient.get_client()
        bucket = client.storage.from_(settings.QUESTION_IMAGE_BUCKET)

        try:
            bucket.upload(
                path=path,
                file=file_content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
            url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

        if not url:
            raise StorageUploadError("Failed to generate public URL")

        width, height = StorageService.image_dimensions(file_content)
        logger.info(f"Uploaded question image to storage: {path}")

        return {
            "url": url,
            "width": width,
            "height": height,
            "filename": unique_name,
            "size": len(file_content),
            "type": content_type,
        }

    @staticmethod
    def storage_path_from_url(url: str) -> str | None:
        """
        Extract the in-bucket path (from "questions/" onward) from a public URL.

        Example:
            ".../object/public/question-images/questions/abc.png" -> "questions/abc.png"
        """
        try:
            parts = urlparse(url).path.split("/")
        except ValueError:
            return None
        if IMAGE_PREFIX not in parts:
            return None
        return "/".join(parts[parts.index(IMAGE_PREFIX):])

    @staticmethod
    def delete_question_image(url: str) -> bool:
        """
        Remove a stored question image.

        Best-effort: failures are logged and reported as False.
        """
        path = StorageService.storage_path_from_url(url)
        if not path:
            return False

        client = SupabaseClient.get_client()
        try:
            client.storage.from_(settings.QUESTION_IMAGE_BUCKET).remove([path])
            logger.info(f"Deleted question image: {path}")
            return True
        except Exception as e:
            logger.warning(f"Failed to delete question image {path}: {e}")
            return False
