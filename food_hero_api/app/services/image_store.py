"""
Image storage for waste entry photos.

Two backends implement the same small interface:

* ``LocalImageStore`` writes files into a directory and returns URLs
  under a configurable base URL.  Used for development and tests.
* ``CloudinaryImageStore`` uploads through the ``cloudinary`` SDK
  into a configured folder.

Callers treat ``delete`` as best effort; the lifecycle service logs
and swallows any exception it raises.
"""

import base64
import binascii
import logging
import mimetypes
import re
import uuid
from pathlib import Path
from typing import Tuple

import cloudinary
import cloudinary.uploader

from ..core.config import Settings
from ..core.errors import ValidationError


logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)


def decode_data_uri(data_uri: str) -> Tuple[bytes, str]:
    """Split a ``data:<mime>;base64,<payload>`` URI into bytes and mime type."""
    match = DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ValidationError("image_data must be a base64 data URI")
    mime = match.group("mime").lower()
    if not mime.startswith("image/"):
        raise ValidationError(f"Unsupported image type {mime}")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("image_data is not valid base64")
    if not data:
        raise ValidationError("image_data is empty")
    return data, mime


class ImageStore:
    """Interface for image backends."""

    def save(self, data: bytes, content_type: str) -> str:
        """Store ``data`` and return the URL it can be fetched from."""
        raise NotImplementedError

    def delete(self, url: str) -> None:
        """Remove the image previously returned by ``save``."""
        raise NotImplementedError


class LocalImageStore(ImageStore):
    def __init__(self, directory: str, base_url: str = "/uploads") -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def save(self, data: bytes, content_type: str) -> str:
        extension = mimetypes.guess_extension(content_type) or ".bin"
        name = f"{uuid.uuid4().hex}{extension}"
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(data)
        logger.debug("Stored image %s (%d bytes)", name, len(data))
        return f"{self.base_url}/{name}"

    def delete(self, url: str) -> None:
        name = url.rsplit("/", 1)[-1]
        (self.directory / name).unlink()
        logger.debug("Deleted image %s", name)


class CloudinaryImageStore(ImageStore):
    """Cloudinary backend built on the official SDK uploader."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str,
        timeout: float = 15.0,
    ) -> None:
        if not (cloud_name and api_key and api_secret):
            raise ValueError("Cloudinary credentials are not configured")
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder = folder.strip("/")
        self.timeout = timeout

    def public_id_for(self, url: str) -> str:
        """``.../<folder>/<name>.jpg`` -> ``<folder>/<name>``."""
        name = url.rsplit("/", 1)[-1].split(".", 1)[0]
        return f"{self.folder}/{name}" if self.folder else name

    def save(self, data: bytes, content_type: str) -> str:
        data_uri = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
        options = {"folder": self.folder} if self.folder else {}
        result = cloudinary.uploader.upload(data_uri, resource_type="image", timeout=self.timeout, **options)
        secure_url = result["secure_url"]
        logger.info("Uploaded image to Cloudinary: %s", secure_url)
        return secure_url

    def delete(self, url: str) -> None:
        public_id = self.public_id_for(url)
        result = cloudinary.uploader.destroy(public_id, timeout=self.timeout)
        logger.info("Cloudinary destroy %s: %s", public_id, result.get("result"))


def build_image_store(settings: Settings) -> ImageStore:
    """Create the backend selected by ``settings.image_backend``."""
    backend = settings.image_backend.lower()
    if backend == "cloudinary":
        return CloudinaryImageStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        )
    if backend == "local":
        return LocalImageStore(settings.image_dir, settings.image_base_url)
    raise ValueError(f"Unknown IMAGE_BACKEND {settings.image_backend!r}")
