"""
Gallery assets: page gallery, about-page letter galleries, recognitions and
offer banners. Every row owns one remote image; writes go through the
dual-write helpers so a row never points at a deleted object.
"""

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
import logging

from trekdesk.api.deps import get_attachments, read_upload, require_db
from trekdesk.core.errors import InvalidInputError, NotFoundError
from trekdesk.core.rate_limiting import limiter, CONTENT_LIMIT
from trekdesk.core.security import require_admin
from trekdesk.db.models import GalleryAsset
from trekdesk.db.repositories import GalleryAssetRepository
from trekdesk.services.attachments import MediaAttachmentService
from trekdesk.services.media_store import IMAGE, StoredObject

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gallery", tags=["gallery"])

GALLERY_SECTIONS = (
    "gallery",
    "appreciation_letter",
    "recognition_association_letter",
    "recognition",
    "offer_banner",
)


class GalleryAssetPatch(BaseModel):
    """Metadata-only edit; the image itself changes through PUT /{id}/image."""
    title: Optional[str] = Field(None, max_length=300)
    alt_text: Optional[str] = Field(None, max_length=300)
    link_url: Optional[str] = Field(None, max_length=2000)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


def _asset_to_dict(asset: GalleryAsset) -> Dict[str, Any]:
    return {
        "id": asset.id,
        "section": asset.section,
        "image_url": asset.image_url,
        "public_id": asset.public_id,
        "sort_order": asset.sort_order,
        "title": asset.title,
        "alt_text": asset.alt_text,
        "link_url": asset.link_url,
        "is_active": asset.is_active,
        "created_at": asset.created_at,
        "updated_at": asset.updated_at,
    }


def _check_section(section: str) -> str:
    if section not in GALLERY_SECTIONS:
        raise InvalidInputError(f"section must be one of: {', '.join(GALLERY_SECTIONS)}")
    return section


def _get_asset_or_404(repo: GalleryAssetRepository, asset_id: str) -> GalleryAsset:
    asset = repo.get_by_id(asset_id)
    if not asset:
        raise NotFoundError("Gallery image not found")
    return asset


@router.get("")
@limiter.limit(CONTENT_LIMIT)
def list_gallery(
    request: Request,
    section: Optional[str] = Query(None, description="Limit to one section"),
    db: Session = Depends(require_db),
):
    """Active images ordered by sort index, newest first on ties."""
    if section:
        _check_section(section)
    assets = GalleryAssetRepository(db).list_section(section)
    return {"images": [_asset_to_dict(a) for a in assets]}


@router.get("/all", dependencies=[Depends(require_admin)])
def list_gallery_dashboard(
    section: Optional[str] = Query(None),
    db: Session = Depends(require_db),
):
    """Dashboard view, inactive rows included."""
    if section:
        _check_section(section)
    assets = GalleryAssetRepository(db).list_section(section, include_inactive=True)
    return {"images": [_asset_to_dict(a) for a in assets]}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_gallery_asset(
    file: UploadFile = File(...),
    section: str = Form(...),
    title: Optional[str] = Form(None),
    alt_text: Optional[str] = Form(None),
    link_url: Optional[str] = Form(None),
    sort_order: Optional[int] = Form(None),
    is_active: bool = Form(True),
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    """Upload an image and create its row; the upload is removed if the row write fails."""
    _check_section(section)
    repo = GalleryAssetRepository(db)
    upload = read_upload(file)
    if sort_order is None:
        sort_order = repo.next_sort_order(section)

    def write_row(stored: StoredObject) -> GalleryAsset:
        return repo.create({
            "section": section,
            "image_url": stored.url,
            "public_id": stored.public_id,
            "sort_order": sort_order,
            "title": title,
            "alt_text": alt_text,
            "link_url": link_url,
            "is_active": is_active,
        })

    asset = media.attach(upload, IMAGE, write_row)
    logger.info(f"Created gallery asset {asset.id} in {section}")
    return _asset_to_dict(asset)


@router.patch("/{asset_id}", dependencies=[Depends(require_admin)])
def update_gallery_asset(asset_id: str, payload: GalleryAssetPatch, db: Session = Depends(require_db)):
    repo = GalleryAssetRepository(db)
    asset = _get_asset_or_404(repo, asset_id)
    asset = repo.update(asset, payload.model_dump(exclude_unset=True))
    return _asset_to_dict(asset)


@router.put("/{asset_id}/image", dependencies=[Depends(require_admin)])
def replace_gallery_image(
    asset_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    """New image first, then the row, then the old image (best-effort)."""
    repo = GalleryAssetRepository(db)
    asset = _get_asset_or_404(repo, asset_id)
    upload = read_upload(file)

    def write_row(stored: StoredObject) -> GalleryAsset:
        return repo.update(asset, {"image_url": stored.url, "public_id": stored.public_id})

    asset = media.replace(upload, IMAGE, asset.public_id, "image", write_row)
    return _asset_to_dict(asset)


@router.delete("/{asset_id}", dependencies=[Depends(require_admin)])
def delete_gallery_asset(
    asset_id: str,
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    repo = GalleryAssetRepository(db)
    asset = _get_asset_or_404(repo, asset_id)
    media.detach(asset.public_id, "image", lambda: repo.delete(asset))
    logger.info(f"Deleted gallery asset {asset_id}")
    return {"deleted": asset_id}
