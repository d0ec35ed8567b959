from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import date, datetime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import HTTPException
import logging

from trekdesk.api.deps import get_attachments, read_upload, require_db
from trekdesk.core.errors import InvalidInputError, NotFoundError, WriteRejectedError
from trekdesk.core.monitoring import track_performance
from trekdesk.core.rate_limiting import limiter, CATALOG_LIMIT
from trekdesk.core.security import require_admin
from trekdesk.db.models import TravelPackage
from trekdesk.db.repositories import TravelPackageRepository
from trekdesk.services.attachments import MediaAttachmentService
from trekdesk.services.catalog import (
    DIFFICULTY_LEVELS,
    CatalogQuery,
    build_pagination,
    effective_price,
    filter_options,
    package_summary,
    parse_duration_days,
    slugify,
)
from trekdesk.services.media_store import DOCUMENT, StoredObject
from trekdesk.services.search_filters import SearchFilters
from trekdesk.services.subdocuments import (
    FAQItem,
    HeadingItem,
    append_item,
    dump_items,
    remove_item,
    update_item,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packages"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class PackageIn(BaseModel):
    """Dashboard package form. The slug is always derived from package_name."""
    package_name: str = Field(..., min_length=1, max_length=300)
    package_description: Optional[str] = None
    package_duration: Optional[str] = Field(None, max_length=100)
    difficulty: Optional[str] = None
    altitude: Optional[str] = Field(None, max_length=100)
    departure_and_return_location: Optional[str] = None
    departure_time: Optional[str] = None
    trek_length: Optional[str] = None
    base_camp: Optional[str] = None
    inclusions: Optional[str] = None
    exclusions: Optional[str] = None
    how_to_reach: Optional[str] = None
    cancellation_policy: Optional[str] = None
    refund_policy: Optional[str] = None
    safety_for_trek: Optional[str] = None
    itinerary: List[HeadingItem] = []
    faqs: List[FAQItem] = []
    why_choose_us: List[HeadingItem] = []
    booking_dates: List[date] = []
    thumbnail_image_url: Optional[str] = None
    gallery_images: List[str] = []
    price: float = Field(..., gt=0, description="Base price, must be positive")
    discounted_price: Optional[float] = Field(None, gt=0)

    @field_validator("package_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not slugify(v):
            raise ValueError("Package name must contain at least one letter or digit")
        return v

    @field_validator("difficulty")
    @classmethod
    def known_difficulty(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if v not in DIFFICULTY_LEVELS:
            raise ValueError(f"Difficulty must be one of: {', '.join(DIFFICULTY_LEVELS)}")
        return v

    @model_validator(mode="after")
    def discount_not_above_price(self):
        if self.discounted_price is not None and self.discounted_price > self.price:
            raise ValueError("Discounted price cannot be higher than the price")
        return self

    def to_row(self) -> Dict[str, Any]:
        fields = self.model_dump(exclude={"itinerary", "faqs", "why_choose_us", "booking_dates",
                                          "expected_updated_at"})
        fields.update(
            slug=slugify(self.package_name),
            itinerary=dump_items(self.itinerary),
            faqs=dump_items(self.faqs),
            why_choose_us=dump_items(self.why_choose_us),
            booking_dates=sorted({d.isoformat() for d in self.booking_dates}),
            gallery_images=[url for url in self.gallery_images if url],
        )
        return fields


class PackageUpdate(PackageIn):
    # Optional optimistic-concurrency precondition (last write wins without it)
    expected_updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _package_to_dict(package: TravelPackage) -> Dict[str, Any]:
    """Full package for the detail page and the dashboard form."""
    data = {column.name: getattr(package, column.name) for column in TravelPackage.__table__.columns}
    data["effective_price"] = effective_price(package.price, package.discounted_price)
    data["duration_days"] = parse_duration_days(package.package_duration, package.itinerary)
    return data


def _get_package_or_404(repo: TravelPackageRepository, package_id: str) -> TravelPackage:
    package = repo.get_by_id(package_id)
    if not package:
        raise NotFoundError("Package not found")
    return package


def _ensure_slug_free(repo: TravelPackageRepository, slug: str, exclude_id: Optional[str] = None) -> None:
    if repo.slug_taken(slug, exclude_id=exclude_id):
        raise WriteRejectedError(f"A package with slug '{slug}' already exists")


@track_performance("catalog query")
def _run_catalog_query(db: Session, query: CatalogQuery) -> Dict[str, Any]:
    packages, total = TravelPackageRepository(db).search(query)
    return {
        "packages": [package_summary(p) for p in packages],
        "pagination": build_pagination(query.page_number, total, query.page_size),
    }


# ============================================================================
# PUBLIC CATALOG
# ============================================================================

@router.get("/packages")
@limiter.limit(CATALOG_LIMIT)
def list_packages(request: Request, db: Session = Depends(require_db)):
    """
    Paginated, filtered, sorted catalog.
    Query params: pageNumber, searchQuery, sortBy, minPrice, maxPrice, duration,
    minDuration, maxDuration, difficulty. Malformed values fall back to defaults.
    """
    query = CatalogQuery.from_params(request.query_params)
    try:
        return _run_catalog_query(db, query)
    except SQLAlchemyError as e:
        logger.error(f"Catalog query failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable: internal error")


@router.get("/packages/featured")
@limiter.limit(CATALOG_LIMIT)
def featured_packages(
    request: Request,
    limit: int = Query(6, ge=1, le=24, description="Number of packages"),
    db: Session = Depends(require_db),
):
    """Newest packages for the home slider and footer."""
    packages = TravelPackageRepository(db).latest(limit)
    return {"packages": [package_summary(p) for p in packages]}


@router.get("/packages/meta/filters")
def get_filter_options():
    """Sort keys, duration buckets, difficulties and price defaults."""
    return filter_options()


@router.get("/packages/search-link")
def banner_search_link(request: Request):
    """
    Normalize the banner search box (searchQuery, minPrice, maxPrice) into the
    filter state and the catalog query parameters it should navigate with.
    Malformed values fall back to defaults.
    """
    filters = SearchFilters.from_params(request.query_params)
    return {"filters": filters.model_dump(), "queryParams": filters.to_query_params()}


@router.get("/packages/{slug}")
def get_package_details(slug: str, db: Session = Depends(require_db)):
    """Full package by slug; 404 when no package has this slug."""
    package = TravelPackageRepository(db).get_by_slug(slug)
    if not package:
        raise NotFoundError("Package not found")
    return _package_to_dict(package)


# ============================================================================
# DASHBOARD (X-API-Key required)
# ============================================================================

@router.get("/dashboard/packages", dependencies=[Depends(require_admin)])
def dashboard_list_packages(db: Session = Depends(require_db)):
    """Every package, newest first, in full."""
    repo = TravelPackageRepository(db)
    return {"packages": [_package_to_dict(p) for p in repo.latest()]}


@router.post("/packages", status_code=201, dependencies=[Depends(require_admin)])
def create_package(payload: PackageIn, db: Session = Depends(require_db)):
    repo = TravelPackageRepository(db)
    fields = payload.to_row()
    _ensure_slug_free(repo, fields["slug"])
    package = repo.create(fields)
    logger.info(f"Created package {package.id} ({package.slug})")
    return _package_to_dict(package)


@router.put("/packages/{package_id}", dependencies=[Depends(require_admin)])
def update_package(package_id: str, payload: PackageUpdate, db: Session = Depends(require_db)):
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    fields = payload.to_row()
    _ensure_slug_free(repo, fields["slug"], exclude_id=package.id)
    package = repo.update_checked(package, fields, payload.expected_updated_at)
    logger.info(f"Updated package {package.id} ({package.slug})")
    return _package_to_dict(package)


@router.delete("/packages/{package_id}", dependencies=[Depends(require_admin)])
def delete_package(
    package_id: str,
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    """Deletes the brochure from the object store first, then the row."""
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    media.detach(package.document_public_id, "raw", lambda: repo.delete(package))
    logger.info(f"Deleted package {package_id}")
    return {"deleted": package_id}


@router.post("/packages/{package_id}/document", dependencies=[Depends(require_admin)])
def upload_package_document(
    package_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    """Attach or replace the package PDF brochure."""
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    upload = read_upload(file)

    def write_row(stored: StoredObject) -> TravelPackage:
        return repo.update(package, {"document_url": stored.url, "document_public_id": stored.public_id})

    updated = media.replace(upload, DOCUMENT, package.document_public_id, "raw", write_row)
    return _package_to_dict(updated)


@router.delete("/packages/{package_id}/document", dependencies=[Depends(require_admin)])
def delete_package_document(
    package_id: str,
    db: Session = Depends(require_db),
    media: MediaAttachmentService = Depends(get_attachments),
):
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    updated = media.detach(
        package.document_public_id,
        "raw",
        lambda: repo.update(package, {"document_url": None, "document_public_id": None}),
    )
    return _package_to_dict(updated)


# ============================================================================
# PACKAGE SUB-DOCUMENTS (itinerary, faqs, why_choose_us)
# ============================================================================

PackageList = Literal["itinerary", "faqs", "why_choose_us"]

_ITEM_MODELS = {"itinerary": HeadingItem, "faqs": FAQItem, "why_choose_us": HeadingItem}


class PackageItemIn(BaseModel):
    """One itinerary step, FAQ entry or why-choose-us card (partial on update)."""
    fields: Dict[str, Any] = Field(..., min_length=1)


def _normalized(list_name: str, item: Dict[str, Any]) -> Dict[str, Any]:
    try:
        data = _ITEM_MODELS[list_name].model_validate(item).model_dump()
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {list_name} entry: {e.errors()[0]['msg']}")
    if not any(str(value).strip() for value in data.values()):
        raise InvalidInputError(f"Empty {list_name} entry")
    return data


@router.post("/packages/{package_id}/items/{list_name}", status_code=201, dependencies=[Depends(require_admin)])
def append_package_item(
    package_id: str,
    list_name: PackageList,
    payload: PackageItemIn,
    db: Session = Depends(require_db),
):
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    items = append_item(getattr(package, list_name), _normalized(list_name, payload.fields))
    return _package_to_dict(repo.update(package, {list_name: items}))


@router.put("/packages/{package_id}/items/{list_name}/{index}", dependencies=[Depends(require_admin)])
def update_package_item(
    package_id: str,
    list_name: PackageList,
    index: int,
    payload: PackageItemIn,
    db: Session = Depends(require_db),
):
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    items = update_item(getattr(package, list_name), index, payload.fields)
    items[index] = _normalized(list_name, items[index])
    return _package_to_dict(repo.update(package, {list_name: items}))


@router.delete("/packages/{package_id}/items/{list_name}/{index}", dependencies=[Depends(require_admin)])
def remove_package_item(
    package_id: str,
    list_name: PackageList,
    index: int,
    db: Session = Depends(require_db),
):
    repo = TravelPackageRepository(db)
    package = _get_package_or_404(repo, package_id)
    items = remove_item(getattr(package, list_name), index)
    return _package_to_dict(repo.update(package, {list_name: items}))
