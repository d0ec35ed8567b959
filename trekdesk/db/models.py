"""
Database models -- SQLAlchemy ORM definitions.
Compatible with both PostgreSQL and SQLite. Ids are opaque UUID strings.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TravelPackage(TimestampMixin, Base):
    """
    A trek or tour package. Sub-documents (itinerary, faqs, why_choose_us,
    booking_dates, gallery_images) are stored as ordered JSON lists on the row.
    """
    __tablename__ = "packages"

    id = Column(String(36), primary_key=True, default=_new_id)
    package_name = Column(Text, nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    package_description = Column(Text)

    package_duration = Column(Text)
    difficulty = Column(String(50), index=True)
    altitude = Column(Text)
    departure_and_return_location = Column(Text)
    departure_time = Column(Text)
    trek_length = Column(Text)
    base_camp = Column(Text)
    inclusions = Column(Text)
    exclusions = Column(Text)
    how_to_reach = Column(Text)
    cancellation_policy = Column(Text)
    refund_policy = Column(Text)
    safety_for_trek = Column(Text)

    itinerary = Column(JSON, nullable=False, default=list)
    faqs = Column(JSON, nullable=False, default=list)
    why_choose_us = Column(JSON, nullable=False, default=list)
    booking_dates = Column(JSON, nullable=False, default=list)

    thumbnail_image_url = Column(Text)
    gallery_images = Column(JSON, nullable=False, default=list)
    document_url = Column(Text)
    document_public_id = Column(Text)

    price = Column(Float, nullable=False)
    discounted_price = Column(Float)


class GalleryAsset(TimestampMixin, Base):
    """
    Remote image plus the key needed to delete it. Shared by the page gallery,
    about-page letter galleries, recognitions and offer banners (by `section`).
    """
    __tablename__ = "gallery_assets"
    __table_args__ = (Index("ix_gallery_assets_section_order", "section", "sort_order"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    section = Column(String(64), nullable=False)
    image_url = Column(Text, nullable=False)
    public_id = Column(Text)
    sort_order = Column(Integer, nullable=False, default=0)
    title = Column(Text)
    alt_text = Column(Text)
    link_url = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)


class Testimonial(TimestampMixin, Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    title = Column(Text)
    description = Column(Text, nullable=False)
    location = Column(Text)
    rating = Column(Integer, nullable=False, default=5)
    sort_order = Column(Integer, nullable=False, default=0)


class MarqueeText(TimestampMixin, Base):
    __tablename__ = "marquee_texts"

    id = Column(String(36), primary_key=True, default=_new_id)
    text = Column(Text, nullable=False)
    link_url = Column(Text)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class SitePage(TimestampMixin, Base):
    """Static page content (About, FAQ, policies) keyed by page_key."""
    __tablename__ = "site_pages"

    id = Column(String(36), primary_key=True, default=_new_id)
    page_key = Column(String(64), unique=True, nullable=False, index=True)
    title = Column(Text)
    content = Column(Text)
    sections = Column(JSON, nullable=False, default=list)


class Enquiry(TimestampMixin, Base):
    """Contact form, booking-modal and brochure-download enquiries."""
    __tablename__ = "enquiries"

    id = Column(String(36), primary_key=True, default=_new_id)
    source = Column(String(16), nullable=False, index=True)
    full_name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    whatsapp_number = Column(Text)
    message = Column(Text)
    package_name = Column(Text)
    document_url = Column(Text)
