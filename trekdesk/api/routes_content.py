"""
Site content: testimonials, banner marquee texts and static pages
(About, FAQ, policies, home why-choose-us).
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
import logging

from trekdesk.api.deps import require_db
from trekdesk.core.errors import NotFoundError
from trekdesk.core.rate_limiting import limiter, CONTENT_LIMIT
from trekdesk.core.security import require_admin
from trekdesk.db.models import MarqueeText, SitePage
from trekdesk.db.repositories import MarqueeTextRepository, SitePageRepository, TestimonialRepository
from trekdesk.services.subdocuments import append_item, remove_item, update_item

logger = logging.getLogger(__name__)

router = APIRouter(tags=["content"])

PAGE_KEYS = (
    "about",
    "privacy-policy",
    "terms-and-conditions",
    "cancellation-policy",
    "faqs",
    "home-why-choose-us",
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class TestimonialIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    title: Optional[str] = Field(None, max_length=300)
    description: str = Field(..., min_length=1)
    location: Optional[str] = Field(None, max_length=200)
    rating: int = Field(5, ge=1, le=5)
    sort_order: int = 0


class MarqueeTextIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    link_url: Optional[str] = Field(None, max_length=2000)
    sort_order: int = 0
    is_active: bool = True


class SitePageIn(BaseModel):
    title: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    sections: List[Dict[str, Any]] = []


class SectionItem(BaseModel):
    """One record in a page's `sections` list (FAQ entry, card, letter...)."""
    fields: Dict[str, Any] = Field(..., min_length=1)


def _row_to_dict(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _page_key_or_404(page_key: str) -> str:
    if page_key not in PAGE_KEYS:
        raise NotFoundError("Page not found")
    return page_key


# ============================================================================
# TESTIMONIALS
# ============================================================================

@router.get("/testimonials")
@limiter.limit(CONTENT_LIMIT)
def list_testimonials(request: Request, db: Session = Depends(require_db)):
    return {"testimonials": [_row_to_dict(t) for t in TestimonialRepository(db).list_all()]}


@router.post("/testimonials", status_code=201, dependencies=[Depends(require_admin)])
def create_testimonial(payload: TestimonialIn, db: Session = Depends(require_db)):
    row = TestimonialRepository(db).create(payload.model_dump())
    return _row_to_dict(row)


@router.put("/testimonials/{testimonial_id}", dependencies=[Depends(require_admin)])
def update_testimonial(testimonial_id: str, payload: TestimonialIn, db: Session = Depends(require_db)):
    repo = TestimonialRepository(db)
    row = repo.get_by_id(testimonial_id)
    if not row:
        raise NotFoundError("Testimonial not found")
    return _row_to_dict(repo.update(row, payload.model_dump()))


@router.delete("/testimonials/{testimonial_id}", dependencies=[Depends(require_admin)])
def delete_testimonial(testimonial_id: str, db: Session = Depends(require_db)):
    repo = TestimonialRepository(db)
    row = repo.get_by_id(testimonial_id)
    if not row:
        raise NotFoundError("Testimonial not found")
    repo.delete(row)
    return {"deleted": testimonial_id}


# ============================================================================
# MARQUEE TEXTS
# ============================================================================

@router.get("/marquee-texts")
@limiter.limit(CONTENT_LIMIT)
def list_marquee_texts(request: Request, db: Session = Depends(require_db)):
    """Active texts only, in display order."""
    return {"texts": [_row_to_dict(t) for t in MarqueeTextRepository(db).list_texts()]}


@router.get("/marquee-texts/all", dependencies=[Depends(require_admin)])
def list_all_marquee_texts(db: Session = Depends(require_db)):
    texts = MarqueeTextRepository(db).list_texts(include_inactive=True)
    return {"texts": [_row_to_dict(t) for t in texts]}


@router.post("/marquee-texts", status_code=201, dependencies=[Depends(require_admin)])
def create_marquee_text(payload: MarqueeTextIn, db: Session = Depends(require_db)):
    return _row_to_dict(MarqueeTextRepository(db).create(payload.model_dump()))


@router.put("/marquee-texts/{text_id}", dependencies=[Depends(require_admin)])
def update_marquee_text(text_id: str, payload: MarqueeTextIn, db: Session = Depends(require_db)):
    repo = MarqueeTextRepository(db)
    row: Optional[MarqueeText] = repo.get_by_id(text_id)
    if not row:
        raise NotFoundError("Marquee text not found")
    return _row_to_dict(repo.update(row, payload.model_dump()))


@router.delete("/marquee-texts/{text_id}", dependencies=[Depends(require_admin)])
def delete_marquee_text(text_id: str, db: Session = Depends(require_db)):
    repo = MarqueeTextRepository(db)
    row = repo.get_by_id(text_id)
    if not row:
        raise NotFoundError("Marquee text not found")
    repo.delete(row)
    return {"deleted": text_id}


# ============================================================================
# STATIC PAGES
# ============================================================================

@router.get("/pages/{page_key}")
@limiter.limit(CONTENT_LIMIT)
def get_page(request: Request, page_key: str, db: Session = Depends(require_db)):
    page = SitePageRepository(db).get_by_key(_page_key_or_404(page_key))
    if not page:
        raise NotFoundError("Page not found")
    return _row_to_dict(page)


@router.put("/pages/{page_key}", dependencies=[Depends(require_admin)])
def put_page(page_key: str, payload: SitePageIn, db: Session = Depends(require_db)):
    """Create or replace a page's content."""
    page = SitePageRepository(db).upsert(_page_key_or_404(page_key), payload.model_dump())
    logger.info(f"Saved page {page_key}")
    return _row_to_dict(page)


def _existing_page(db: Session, page_key: str) -> SitePage:
    page = SitePageRepository(db).get_by_key(_page_key_or_404(page_key))
    if not page:
        raise NotFoundError("Page not found")
    return page


@router.post("/pages/{page_key}/sections", status_code=201, dependencies=[Depends(require_admin)])
def append_page_section(page_key: str, payload: SectionItem, db: Session = Depends(require_db)):
    page = _existing_page(db, page_key)
    page = SitePageRepository(db).update(page, {"sections": append_item(page.sections, payload.fields)})
    return _row_to_dict(page)


@router.put("/pages/{page_key}/sections/{index}", dependencies=[Depends(require_admin)])
def update_page_section(page_key: str, index: int, payload: SectionItem, db: Session = Depends(require_db)):
    page = _existing_page(db, page_key)
    page = SitePageRepository(db).update(page, {"sections": update_item(page.sections, index, payload.fields)})
    return _row_to_dict(page)


@router.delete("/pages/{page_key}/sections/{index}", dependencies=[Depends(require_admin)])
def remove_page_section(page_key: str, index: int, db: Session = Depends(require_db)):
    page = _existing_page(db, page_key)
    page = SitePageRepository(db).update(page, {"sections": remove_item(page.sections, index)})
    return _row_to_dict(page)
