"""
Repository pattern for data access.
One repository per table; all reads and writes go through a Session.
Integrity failures are rolled back and raised as WriteRejectedError.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import and_, case, func
import logging

from trekdesk.core.errors import StaleWriteError, WriteRejectedError
from trekdesk.db.models import (
    Enquiry,
    GalleryAsset,
    MarqueeText,
    SitePage,
    Testimonial,
    TravelPackage,
)
from trekdesk.services.catalog import CatalogQuery, SortOption, parse_duration_days

logger = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Repository:
    """Shared get/create/update/delete for a single ORM model."""

    model: Any = None

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, row_id: str):
        return self.db.query(self.model).filter(self.model.id == row_id).first()

    def create(self, fields: Dict[str, Any]):
        row = self.model(**fields)
        self.db.add(row)
        self._commit(f"create {self.model.__tablename__}")
        self.db.refresh(row)
        return row

    def update(self, row, fields: Dict[str, Any]):
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit(f"update {self.model.__tablename__} {row.id}")
        self.db.refresh(row)
        return row

    def delete(self, row) -> None:
        self.db.delete(row)
        self._commit(f"delete {self.model.__tablename__} {row.id}")

    def count(self) -> int:
        return self.db.query(self.model).count()

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            detail = str(getattr(e, "orig", e))
            logger.warning(f"Write rejected ({action}): {detail}")
            raise WriteRejectedError(detail)
        except Exception:
            self.db.rollback()
            raise


class TravelPackageRepository(_Repository):
    """Packages table: catalog query plus dashboard create/update/delete."""

    model = TravelPackage

    def get_by_slug(self, slug: str) -> Optional[TravelPackage]:
        return self.db.query(TravelPackage).filter(TravelPackage.slug == slug).first()

    def slug_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(TravelPackage.id).filter(TravelPackage.slug == slug)
        if exclude_id:
            query = query.filter(TravelPackage.id != exclude_id)
        return query.first() is not None

    def search(self, query: CatalogQuery) -> Tuple[List[TravelPackage], int]:
        """
        Filter, order and paginate the catalog. Returns (page rows, total matches).
        Filtering always happens before slicing.
        """
        q = self.db.query(TravelPackage)

        if query.search_query:
            pattern = f"%{_escape_like(query.search_query)}%"
            q = q.filter(TravelPackage.package_name.ilike(pattern, escape="\\"))

        if query.difficulty:
            q = q.filter(TravelPackage.difficulty == query.difficulty)

        effective = case(
            (
                and_(
                    TravelPackage.discounted_price.isnot(None),
                    TravelPackage.discounted_price > 0,
                    TravelPackage.discounted_price < TravelPackage.price,
                ),
                TravelPackage.discounted_price,
            ),
            else_=TravelPackage.price,
        )
        q = q.filter(effective >= query.min_price, effective <= query.max_price)
        q = q.order_by(*self._ordering(query.sort_by))

        if not query.filters_by_duration:
            total = q.count()
            rows = q.offset(query.offset).limit(query.page_size).all()
            return rows, total

        # Durations are free text, so bucket matching happens here
        matched = [
            pkg for pkg in q.all()
            if query.matches_duration(parse_duration_days(pkg.package_duration, pkg.itinerary))
        ]
        return matched[query.offset:query.offset + query.page_size], len(matched)

    def latest(self, limit: Optional[int] = None) -> List[TravelPackage]:
        query = self.db.query(TravelPackage).order_by(*self._ordering(SortOption.DATE_DESC))
        if limit:
            query = query.limit(limit)
        return query.all()

    def update_checked(self, package: TravelPackage, fields: Dict[str, Any],
                       expected_updated_at: Optional[datetime] = None) -> TravelPackage:
        """Update, refusing when expected_updated_at no longer matches the row."""
        if expected_updated_at is not None and package.updated_at is not None:
            if _as_utc(package.updated_at) != _as_utc(expected_updated_at):
                raise StaleWriteError("Package was modified by someone else; reload and try again")
        return self.update(package, fields)

    @staticmethod
    def _ordering(sort_by: SortOption):
        name = TravelPackage.package_name
        if sort_by == SortOption.TITLE_ASC:
            return [func.lower(name).asc(), name.asc(), TravelPackage.id.asc()]
        if sort_by == SortOption.TITLE_DESC:
            return [func.lower(name).desc(), name.desc(), TravelPackage.id.desc()]
        if sort_by == SortOption.DATE_ASC:
            return [TravelPackage.created_at.asc(), TravelPackage.id.asc()]
        return [TravelPackage.created_at.desc(), TravelPackage.id.desc()]


class GalleryAssetRepository(_Repository):
    model = GalleryAsset

    def list_section(self, section: Optional[str] = None, include_inactive: bool = False) -> List[GalleryAsset]:
        """Manual sort index first, newest first on ties."""
        query = self.db.query(GalleryAsset)
        if section:
            query = query.filter(GalleryAsset.section == section)
        if not include_inactive:
            query = query.filter(GalleryAsset.is_active.is_(True))
        return query.order_by(
            GalleryAsset.sort_order.asc(),
            GalleryAsset.created_at.desc(),
            GalleryAsset.id.asc(),
        ).all()

    def next_sort_order(self, section: str) -> int:
        current = (
            self.db.query(func.max(GalleryAsset.sort_order))
            .filter(GalleryAsset.section == section)
            .scalar()
        )
        return 0 if current is None else current + 1


class TestimonialRepository(_Repository):
    model = Testimonial

    def list_all(self) -> List[Testimonial]:
        return self.db.query(Testimonial).order_by(
            Testimonial.sort_order.asc(),
            Testimonial.created_at.desc(),
            Testimonial.id.asc(),
        ).all()


class MarqueeTextRepository(_Repository):
    model = MarqueeText

    def list_texts(self, include_inactive: bool = False) -> List[MarqueeText]:
        query = self.db.query(MarqueeText)
        if not include_inactive:
            query = query.filter(MarqueeText.is_active.is_(True))
        return query.order_by(
            MarqueeText.sort_order.asc(),
            MarqueeText.created_at.desc(),
            MarqueeText.id.asc(),
        ).all()


class SitePageRepository(_Repository):
    model = SitePage

    def get_by_key(self, page_key: str) -> Optional[SitePage]:
        return self.db.query(SitePage).filter(SitePage.page_key == page_key).first()

    def upsert(self, page_key: str, fields: Dict[str, Any]) -> SitePage:
        page = self.get_by_key(page_key)
        if page is None:
            return self.create({"page_key": page_key, **fields})
        return self.update(page, fields)


class EnquiryRepository(_Repository):
    model = Enquiry

    def list_page(self, source: Optional[str], page: int, page_size: int) -> Tuple[List[Enquiry], int]:
        query = self.db.query(Enquiry)
        if source:
            query = query.filter(Enquiry.source == source)
        total = query.count()
        rows = (
            query.order_by(Enquiry.created_at.desc(), Enquiry.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return rows, total
