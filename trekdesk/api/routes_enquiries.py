"""
Enquiry intake (contact form, booking modal, brochure download) and the
dashboard listing.
"""

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, Literal, Optional
from sqlalchemy.orm import Session
import logging

from trekdesk.api.deps import require_db
from trekdesk.core.config import settings
from trekdesk.core.errors import InvalidInputError
from trekdesk.core.rate_limiting import limiter, ENQUIRY_LIMIT
from trekdesk.core.security import require_admin
from trekdesk.db.models import Enquiry
from trekdesk.db.repositories import EnquiryRepository
from trekdesk.services.catalog import build_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enquiries", tags=["enquiries"])


class ContactEnquiry(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=40)
    message: str = Field(..., min_length=1, max_length=5000)


class ModalEnquiry(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    whatsapp_number: str = Field(..., min_length=5, max_length=40)
    message: str = Field(..., min_length=1, max_length=5000)
    package_name: Optional[str] = Field(None, max_length=300)


class BrochureEnquiry(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    whatsapp_number: str = Field(..., min_length=5, max_length=40)
    email: EmailStr
    document_url: str = Field(..., min_length=1, max_length=2000)
    package_name: Optional[str] = Field(None, max_length=300)


def _enquiry_to_dict(row: Enquiry) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in Enquiry.__table__.columns}


def _record(db: Session, source: str, payload: BaseModel) -> Dict[str, Any]:
    row = EnquiryRepository(db).create({"source": source, **payload.model_dump()})
    logger.info(f"Recorded {source} enquiry {row.id}")
    return {"success": True, "enquiry": _enquiry_to_dict(row)}


@router.post("/contact", status_code=201)
@limiter.limit(ENQUIRY_LIMIT)
def submit_contact(request: Request, payload: ContactEnquiry, db: Session = Depends(require_db)):
    return _record(db, "contact", payload)


@router.post("/modal", status_code=201)
@limiter.limit(ENQUIRY_LIMIT)
def submit_modal(request: Request, payload: ModalEnquiry, db: Session = Depends(require_db)):
    return _record(db, "modal", payload)


@router.post("/pdf", status_code=201)
@limiter.limit(ENQUIRY_LIMIT)
def submit_brochure_request(request: Request, payload: BrochureEnquiry, db: Session = Depends(require_db)):
    return _record(db, "pdf", payload)


@router.get("", dependencies=[Depends(require_admin)])
def list_enquiries(
    source: Optional[Literal["contact", "modal", "pdf"]] = Query(None),
    page: int = Query(1),
    pageSize: int = Query(20),
    db: Session = Depends(require_db),
):
    """Newest first. Unlike the public catalog, bad paging input is an error here."""
    if page < 1:
        raise InvalidInputError("Page number must be greater than 0")
    if pageSize < 1 or pageSize > settings.enquiry_page_size_max:
        raise InvalidInputError(f"Page size must be between 1 and {settings.enquiry_page_size_max}")
    rows, total = EnquiryRepository(db).list_page(source, page, pageSize)
    return {
        "enquiries": [_enquiry_to_dict(r) for r in rows],
        "pagination": build_pagination(page, total, pageSize),
    }
