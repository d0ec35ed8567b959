"""Shared route dependencies."""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from trekdesk.db.database import get_db
from trekdesk.services.attachments import MediaAttachmentService
from trekdesk.services.media_store import MediaStore, MediaUpload, get_media_store


def require_db(db: Session = Depends(get_db)) -> Session:
    """503 instead of a half-working response when the database is down."""
    if db is None:
        raise HTTPException(status_code=503, detail="Service unavailable: database not connected")
    return db


def get_attachments(store: MediaStore = Depends(get_media_store)) -> MediaAttachmentService:
    return MediaAttachmentService(store)


def read_upload(file) -> MediaUpload:
    """Buffer a multipart UploadFile into a MediaUpload. Blocking; call from sync routes."""
    data = file.file.read()
    return MediaUpload(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        data=data,
    )
