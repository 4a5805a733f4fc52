"""File handling service for fridge photo uploads."""
import logging
import uuid
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from PIL import Image

from app.config import settings
from app.services.kitchen_session import FridgeImage

logger = logging.getLogger(__name__)

# URL prefix the upload directory is mounted at
PREVIEW_URL_PREFIX = "/uploads"

ALLOWED_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class FileService:
    """Service for reading uploads and storing preview images."""

    def __init__(self, upload_dir: str = settings.upload_dir):
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def read_fridge_image(self, file: UploadFile) -> FridgeImage:
        """
        Read an uploaded fridge photo fully into memory.

        Args:
            file: Uploaded file from FastAPI

        Returns:
            FridgeImage with raw bytes and media type

        Raises:
            ValueError: If file type is not PNG, JPEG or WEBP
        """
        if file.content_type not in ALLOWED_TYPES:
            raise ValueError(
                f"Invalid file type: {file.content_type}. "
                f"Allowed: {sorted(ALLOWED_TYPES)}"
            )

        contents = await file.read()
        mime_type = "image/jpeg" if file.content_type == "image/jpg" else file.content_type
        return FridgeImage(
            data=contents, mime_type=mime_type, filename=file.filename or ""
        )

    def save_preview(self, image: FridgeImage, max_width: int = 640) -> str:
        """
        Write a downscaled copy of the photo for display.

        Returns:
            Relative path to the preview file
        """
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        unique_id = str(uuid.uuid4())[:8]
        extension = ALLOWED_TYPES.get(image.mime_type, ".jpg")
        file_path = self.upload_dir / f"{timestamp}_{unique_id}{extension}"

        with open(file_path, "wb") as f:
            f.write(image.data)

        self._shrink_image(file_path, max_width)
        return str(file_path)

    def _shrink_image(self, file_path: Path, max_width: int):
        """Resize in place if wider than max_width; keep original on failure."""
        try:
            with Image.open(file_path) as img:
                if img.width <= max_width:
                    return
                ratio = max_width / img.width
                new_height = int(img.height * ratio)
                resized = img.resize((max_width, new_height), Image.Resampling.LANCZOS)

                buffer = BytesIO()
                resized.save(buffer, format=img.format, optimize=True)
            file_path.write_bytes(buffer.getvalue())

        except Exception as e:
            logger.warning("Could not shrink preview %s: %s", file_path, e)

    def delete_file(self, file_path: Optional[str]) -> bool:
        """
        Delete a file from disk.

        Returns:
            True if deleted, False if missing or not given
        """
        if not file_path:
            return False
        try:
            path = Path(file_path)
            if path.exists():
                path.unlink()
                return True
            return False
        except OSError as e:
            logger.error("Error deleting file %s: %s", file_path, e)
            return False

    def get_file_url(self, file_path: Optional[str]) -> Optional[str]:
        """Convert a stored file path to the URL it is served from."""
        if not file_path:
            return None
        return f"{PREVIEW_URL_PREFIX}/{Path(file_path).name}"


# Singleton instance
file_service = FileService()
