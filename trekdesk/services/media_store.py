"""
Object store access for uploaded images and PDF brochures.

Files are validated here before anything touches the network, then pushed to
Cloudinary with the server-side credentials. Browsers never see the API secret.
"""

from __future__ import annotations
from typing import Optional
import io
import logging
import time
import uuid

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from pydantic import BaseModel

from trekdesk.core.config import settings
from trekdesk.core.errors import MediaStoreError, MediaValidationError
from trekdesk.core.monitoring import track_performance

logger = logging.getLogger(__name__)

IMAGE = "image"
DOCUMENT = "document"

# Upload kind -> Cloudinary resource_type
RESOURCE_TYPES = {IMAGE: "image", DOCUMENT: "raw"}

_PUBLIC_ID_PREFIX = {IMAGE: "img", DOCUMENT: "pdf"}


class StoredObject(BaseModel):
    """What the store hands back: a stable URL and the key needed to delete it."""
    url: str
    public_id: str
    resource_type: str = "image"


class MediaUpload(BaseModel):
    """An uploaded file held in memory between validation and upload."""
    filename: str = "upload"
    content_type: str = ""
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def infer_kind(content_type: Optional[str]) -> str:
    return DOCUMENT if (content_type or "").lower() == "application/pdf" else IMAGE


def max_bytes_for(kind: str) -> int:
    return settings.max_document_bytes if kind == DOCUMENT else settings.max_image_bytes


def validate_upload(content_type: Optional[str], size: int, kind: str) -> None:
    """Reject wrong types, empty files and oversized files. No network involved."""
    if kind not in RESOURCE_TYPES:
        raise MediaValidationError(f"Unknown upload kind: {kind}")
    content_type = (content_type or "").lower()
    if kind == IMAGE and not content_type.startswith("image/"):
        raise MediaValidationError("File must be an image")
    if kind == DOCUMENT and content_type != "application/pdf":
        raise MediaValidationError("File must be a PDF")
    if size <= 0:
        raise MediaValidationError("No file provided")
    limit = max_bytes_for(kind)
    if size > limit:
        raise MediaValidationError(f"File size must be less than {limit // (1024 * 1024)}MB")


class MediaStore:
    """Interface of the object store used by the dual-write helpers."""

    def upload(self, upload: MediaUpload, kind: str) -> StoredObject:
        raise NotImplementedError

    def delete(self, public_id: str, resource_type: str = "image") -> None:
        """Remove an object. Deleting a key that does not exist is not an error."""
        raise NotImplementedError


class CloudinaryStore(MediaStore):
    """Signed uploads and deletes against the Cloudinary upload API."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = ""):
        self.folder = folder
        self._configured = bool(cloud_name and api_key and api_secret)
        if self._configured:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True,
            )

    def _require_config(self) -> None:
        if not self._configured:
            raise MediaStoreError("Cloudinary credentials are not configured")

    @track_performance("cloudinary upload")
    def upload(self, upload: MediaUpload, kind: str) -> StoredObject:
        self._require_config()
        resource_type = RESOURCE_TYPES[kind]
        public_id = f"{_PUBLIC_ID_PREFIX[kind]}_{int(time.time())}_{uuid.uuid4().hex[:12]}"
        stream = io.BytesIO(upload.data)
        stream.name = upload.filename
        try:
            result = cloudinary.uploader.upload(
                stream,
                resource_type=resource_type,
                folder=self.folder or None,
                public_id=public_id,
                overwrite=False,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload failed: {e}")
            raise MediaStoreError(str(e) or "Failed to upload to Cloudinary")

        url = result.get("secure_url") or result.get("url")
        if not url or not result.get("public_id"):
            raise MediaStoreError("Cloudinary returned an incomplete upload response")
        return StoredObject(url=url, public_id=result["public_id"], resource_type=resource_type)

    @track_performance("cloudinary delete")
    def delete(self, public_id: str, resource_type: str = "image") -> None:
        self._require_config()
        resource_type = "raw" if resource_type == "raw" else "image"
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type=resource_type, invalidate=True)
        except CloudinaryError as e:
            raise MediaStoreError(str(e) or "Failed to delete from Cloudinary")

        outcome = (result or {}).get("result")
        if outcome not in ("ok", "not found"):
            raise MediaStoreError(f"Cloudinary delete returned {outcome!r}")


_store: Optional[MediaStore] = None


def get_media_store() -> MediaStore:
    """FastAPI dependency for the configured object store."""
    global _store
    if _store is None:
        _store = CloudinaryStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.media_folder,
        )
    return _store
