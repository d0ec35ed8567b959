"""
Upload proxy for the dashboard.
Holds the object store credentials so they never reach the browser.
"""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel, Field
from typing import Literal, Optional
import logging

from trekdesk.api.deps import read_upload
from trekdesk.core.errors import MediaValidationError
from trekdesk.core.rate_limiting import limiter, UPLOAD_LIMIT
from trekdesk.core.security import require_admin
from trekdesk.services.media_store import (
    RESOURCE_TYPES,
    MediaStore,
    get_media_store,
    infer_kind,
    validate_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"], dependencies=[Depends(require_admin)])


class DeleteRequest(BaseModel):
    publicId: str = Field(..., min_length=1)
    resourceType: Literal["image", "raw"] = "image"


@router.post("/upload")
@limiter.limit(UPLOAD_LIMIT)
def upload_file(
    request: Request,
    file: UploadFile = File(...),
    kind: Optional[str] = Form(None, description="image or document; inferred from MIME type if omitted"),
    store: MediaStore = Depends(get_media_store),
):
    """Validate and forward a file to the object store -> {url, publicId}."""
    kind = kind or infer_kind(file.content_type)
    if kind not in RESOURCE_TYPES:
        raise MediaValidationError("kind must be 'image' or 'document'")
    upload = read_upload(file)
    validate_upload(upload.content_type, upload.size, kind)
    stored = store.upload(upload, kind)
    logger.info(f"Uploaded {kind} {upload.filename} ({upload.size} bytes)", extra={"public_id": stored.public_id})
    return {"url": stored.url, "publicId": stored.public_id, "resourceType": stored.resource_type}


@router.post("/delete")
def delete_file(payload: DeleteRequest, store: MediaStore = Depends(get_media_store)):
    """Remove an object. Unknown keys are not an error."""
    store.delete(payload.publicId, payload.resourceType)
    logger.info("Deleted remote object on request", extra={"public_id": payload.publicId})
    return {}
