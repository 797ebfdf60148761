"""Object storage for report and resolution photos (Cloudinary)."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Protocol

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

import config
from services.errors import ValidationError

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=config.CLOUDINARY_CLOUD_NAME,
    api_key=config.CLOUDINARY_API_KEY,
    api_secret=config.CLOUDINARY_API_SECRET,
    secure=True,
)


class StorageUnavailableError(Exception):
    """The upload failed or timed out; the caller may retry on its own."""


class ObjectStorage(Protocol):
    async def store(self, file: UploadFile, folder: str) -> str:
        ...


def validate_image(file: UploadFile, max_bytes: int = config.MAX_UPLOAD_BYTES) -> None:
    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in config.ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(
            f"File type not allowed: {file.filename}. Only JPG, PNG or GIF are accepted"
        )

    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    if size > max_bytes:
        raise ValidationError(f"Image {file.filename} exceeds the maximum size of {max_bytes} bytes")


class CloudinaryStorage:
    def __init__(self, base_folder: str = config.CLOUDINARY_FOLDER, timeout: float = config.UPLOAD_TIMEOUT) -> None:
        self.base_folder = base_folder
        self.timeout = timeout

    async def store(self, file: UploadFile, folder: str) -> str:
        validate_image(file)
        public_id = f"{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{os.path.splitext(file.filename)[0]}"
        try:
            result = await asyncio.wait_for(
                run_in_threadpool(
                    cloudinary.uploader.upload,
                    file.file,
                    folder=f"{self.base_folder}/{folder}",
                    public_id=public_id,
                    overwrite=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Upload of %s timed out after %.0fs", file.filename, self.timeout)
            raise StorageUnavailableError("Image upload timed out") from exc
        except Exception as exc:
            logger.exception("Upload of %s failed", file.filename)
            raise StorageUnavailableError(f"Error uploading image {file.filename}") from exc

        return result["secure_url"]
