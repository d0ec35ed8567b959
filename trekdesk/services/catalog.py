"""
Package Catalog Query
=====================
One page of package summaries plus pagination metadata for a set of
search / sort / price / duration / difficulty parameters. Shared by the
catalog page and the home/footer previews.

Pipeline:
  1. Coerce raw query-string values (bad input falls back to defaults)
  2. SQL: name search, difficulty, effective-price range, total ordering
  3. Python: duration buckets (durations are free-text labels)
  4. Slice the filtered rows into the requested page
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Tuple
from enum import Enum
import logging
import math
import re

from pydantic import BaseModel

from trekdesk.core.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Closed option sets
# ---------------------------------------------------------------------------

class SortOption(str, Enum):
    """Catalog sort keys, as sent by the catalog page."""
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"


DEFAULT_SORT = SortOption.DATE_DESC

# Bucket label -> inclusive (min_days, max_days); None = unbounded
DURATION_BUCKETS: Dict[str, Tuple[int, Optional[int]]] = {
    "1-3": (1, 3),
    "4-7": (4, 7),
    "8-14": (8, 14),
    "15-21": (15, 21),
    "22-30": (22, 30),
    "30+": (31, None),
}

DIFFICULTY_LEVELS = ("Easy", "Moderate", "Difficult")

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")
_DAYS_RE = re.compile(r"(\d+)\s*d(?:ays?)?\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+")
_ITINERARY_DAY_RE = re.compile(r"day\s*(\d+)", re.IGNORECASE)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f]")


# ---------------------------------------------------------------------------
# Field derivations
# ---------------------------------------------------------------------------

def slugify(name: str) -> str:
    """'Kedarnath Trek -- 2025!' -> 'kedarnath-trek-2025'. Idempotent."""
    return _SLUG_STRIP_RE.sub("-", (name or "").lower()).strip("-")


def effective_price(price: Optional[float], discounted_price: Optional[float]) -> Optional[float]:
    """Discounted price when set and lower than the base price, else the base price."""
    if discounted_price is not None and discounted_price > 0:
        if price is None or discounted_price < price:
            return discounted_price
    return price


def parse_duration_days(label: Optional[str], itinerary: Optional[List[Dict[str, Any]]] = None) -> Optional[int]:
    """
    Trip length in days from a free-text label ("5 Days", "5N/6D", "7").
    Falls back to the number of distinct "Day N" itinerary headings.
    Returns None when neither yields a positive number.
    """
    if label:
        match = _DAYS_RE.search(label)
        if match is None:
            match = _NUMBER_RE.search(label)
        if match is not None:
            days = int(match.group(1) if match.groups() else match.group(0))
            if days > 0:
                return days

    if itinerary:
        day_numbers = set()
        for step in itinerary:
            heading = step.get("heading") if isinstance(step, dict) else None
            if heading:
                m = _ITINERARY_DAY_RE.search(heading)
                if m:
                    day_numbers.add(m.group(1))
        if day_numbers:
            return len(day_numbers)
    return None


def in_duration_range(days: Optional[int], min_days: Optional[int], max_days: Optional[int]) -> bool:
    if days is None:
        return False
    if min_days is not None and days < min_days:
        return False
    if max_days is not None and days > max_days:
        return False
    return True


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

def _coerce_int(value: Any, default: Optional[int], minimum: Optional[int] = None) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except (ValueError, TypeError):
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def coerce_price(value: Any, default: float) -> float:
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(str(value).strip())
    except (ValueError, TypeError):
        return default
    if not math.isfinite(number) or number < 0:
        return default
    return number


def clean_text(value: Any, max_len: int = 200) -> str:
    if not value or not isinstance(value, str):
        return ""
    return _CONTROL_CHARS_RE.sub("", value.strip())[:max_len]


class CatalogQuery(BaseModel):
    """Normalized catalog query. Build it with from_params() from raw query strings."""

    page_number: int = 1
    search_query: str = ""
    sort_by: SortOption = DEFAULT_SORT
    min_price: float = 0
    max_price: float = float(settings.catalog_default_max_price)
    duration: Optional[str] = None
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    difficulty: Optional[str] = None
    page_size: int = settings.catalog_page_size

    @classmethod
    def from_params(cls, params: Mapping[str, Any], page_size: Optional[int] = None) -> "CatalogQuery":
        """
        Lenient parsing: malformed or out-of-range values become their defaults,
        unknown sort keys / buckets / difficulties mean "no filter".
        """
        sort_raw = clean_text(params.get("sortBy"), 32)
        try:
            sort_by = SortOption(sort_raw)
        except ValueError:
            sort_by = DEFAULT_SORT

        duration = clean_text(params.get("duration"), 16) or None
        if duration is not None and duration not in DURATION_BUCKETS:
            logger.debug(f"Ignoring unknown duration bucket {duration!r}")
            duration = None

        difficulty = clean_text(params.get("difficulty"), 32) or None
        if difficulty is not None and difficulty not in DIFFICULTY_LEVELS:
            logger.debug(f"Ignoring unknown difficulty {difficulty!r}")
            difficulty = None

        return cls(
            page_number=_coerce_int(params.get("pageNumber"), 1, minimum=1),
            search_query=clean_text(params.get("searchQuery")),
            sort_by=sort_by,
            min_price=coerce_price(params.get("minPrice"), 0.0),
            max_price=coerce_price(params.get("maxPrice"), float(settings.catalog_default_max_price)),
            duration=duration,
            min_duration=_coerce_int(params.get("minDuration"), None, minimum=0),
            max_duration=_coerce_int(params.get("maxDuration"), None, minimum=0),
            difficulty=difficulty,
            page_size=page_size or settings.catalog_page_size,
        )

    @property
    def filters_by_duration(self) -> bool:
        return self.duration is not None or self.min_duration is not None or self.max_duration is not None

    def matches_duration(self, days: Optional[int]) -> bool:
        if not self.filters_by_duration:
            return True
        if self.duration is not None:
            low, high = DURATION_BUCKETS[self.duration]
            if not in_duration_range(days, low, high):
                return False
        return in_duration_range(days, self.min_duration, self.max_duration)

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def build_pagination(current_page: int, total_items: int, items_per_page: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_items / items_per_page) if items_per_page else 0
    return {
        "currentPage": current_page,
        "totalPages": total_pages,
        "itemsPerPage": items_per_page,
        "totalItems": total_items,
        "hasNextPage": current_page < total_pages,
        "hasPrevPage": current_page > 1,
    }


def package_summary(package) -> Dict[str, Any]:
    """Card-sized view of a package for catalog listings."""
    return {
        "id": package.id,
        "package_name": package.package_name,
        "slug": package.slug,
        "thumbnail_image_url": package.thumbnail_image_url,
        "package_duration": package.package_duration,
        "duration_days": parse_duration_days(package.package_duration, package.itinerary),
        "difficulty": package.difficulty,
        "altitude": package.altitude,
        "price": package.price,
        "discounted_price": package.discounted_price,
        "effective_price": effective_price(package.price, package.discounted_price),
        "created_at": package.created_at.isoformat() if package.created_at else None,
    }


def filter_options() -> Dict[str, Any]:
    """The closed option sets, for clients that render the filter sidebar."""
    return {
        "sortOptions": [option.value for option in SortOption],
        "defaultSort": DEFAULT_SORT.value,
        "durationBuckets": list(DURATION_BUCKETS.keys()),
        "difficulties": list(DIFFICULTY_LEVELS),
        "minPrice": 0,
        "maxPrice": settings.catalog_default_max_price,
        "itemsPerPage": settings.catalog_page_size,
    }
