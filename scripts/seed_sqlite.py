"""
Seed the configured database with sample packages and site content.
Packages come from a JSON file (list of package objects) when one is given,
otherwise from the built-in samples below.
Run: python scripts/seed_sqlite.py [packages.json] [--reset]
"""

import json
import os
import sys

# Project root on the path for trekdesk imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from trekdesk.db.database import SessionLocal, engine
from trekdesk.db.models import Base, MarqueeText, SitePage, Testimonial, TravelPackage
from trekdesk.services.catalog import slugify

SAMPLE_PACKAGES = [
    {
        "package_name": "Kedarnath Trek 2025",
        "package_duration": "6 Days",
        "difficulty": "Moderate",
        "altitude": "11,755 ft",
        "price": 5000,
        "discounted_price": 4000,
        "itinerary": [
            {"heading": "Day 1: Haridwar to Guptkashi", "description": "Drive along the Mandakini."},
            {"heading": "Day 2: Guptkashi to Kedarnath", "description": "Trek 16 km from Gaurikund."},
        ],
        "faqs": [{"question": "Is the trek suitable for beginners?", "answer": "Yes, with basic fitness."}],
        "booking_dates": ["2025-05-03", "2025-05-10"],
    },
    {
        "package_name": "Brahmatal Winter Trek",
        "package_duration": "5N/6D",
        "difficulty": "Easy",
        "altitude": "12,250 ft",
        "price": 9500,
    },
    {
        "package_name": "Roopkund Expedition",
        "package_duration": "8 Days",
        "difficulty": "Difficult",
        "altitude": "16,470 ft",
        "price": 15000,
        "discounted_price": 13500,
    },
]

SAMPLE_TESTIMONIALS = [
    {"name": "Asha R.", "location": "Pune", "description": "Well organised and safe.", "rating": 5, "sort_order": 0},
    {"name": "Vikram S.", "location": "Delhi", "description": "Great guides, great food.", "rating": 4, "sort_order": 1},
]

SAMPLE_PAGES = [
    {"page_key": "about", "title": "About us", "content": "<p>Small groups, certified leaders.</p>"},
    {
        "page_key": "faqs",
        "title": "Frequently asked questions",
        "sections": [{"question": "How do I book?", "answer": "Use the enquiry form on any package."}],
    },
]


def load_packages(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv):
    reset = "--reset" in argv
    paths = [a for a in argv if not a.startswith("--")]
    packages = load_packages(paths[0]) if paths else SAMPLE_PACKAGES

    print(f"Database: {engine.url}")
    if reset:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    print("Tables ready")

    session = SessionLocal()
    count = 0
    skipped = 0
    seen = set()

    for pkg_data in packages:
        slug = slugify(pkg_data.get("package_name", ""))
        if not slug or slug in seen or not pkg_data.get("price"):
            skipped += 1
            continue
        seen.add(slug)
        if session.query(TravelPackage.id).filter(TravelPackage.slug == slug).first():
            skipped += 1
            continue
        fields = {k: v for k, v in pkg_data.items() if k not in ("id", "slug")}
        session.add(TravelPackage(slug=slug, **fields))
        count += 1

    if not session.query(Testimonial.id).first():
        session.add_all(Testimonial(**t) for t in SAMPLE_TESTIMONIALS)
    if not session.query(MarqueeText.id).first():
        session.add(MarqueeText(text="Early bird discount on summer treks", sort_order=0))
    for page in SAMPLE_PAGES:
        if not session.query(SitePage.id).filter(SitePage.page_key == page["page_key"]).first():
            session.add(SitePage(**page))

    session.commit()

    total = session.execute(text("SELECT COUNT(*) FROM packages")).scalar()
    print(f"\nDone! Inserted {count} packages ({skipped} skipped)")
    print(f"Verified: {total} rows in packages")

    session.close()
    engine.dispose()


if __name__ == "__main__":
    main(sys.argv[1:])
