"""
Search filter state shared between the banner search box and the catalog page.

The state is only read and written through the accessors below; callers turn it
into catalog query parameters with to_query_params().
"""

from typing import Any, Dict, Mapping

from pydantic import BaseModel

from trekdesk.core.config import settings
from trekdesk.services.catalog import clean_text, coerce_price


class SearchFilters(BaseModel):
    search_query: str = ""
    min_price: int = 0
    max_price: int = settings.catalog_default_max_price

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "SearchFilters":
        """Build from raw query strings; unparsable prices fall back to the defaults."""
        filters = cls()
        filters.set_search_query(clean_text(params.get("searchQuery")))
        filters.set_price_range(
            coerce_price(params.get("minPrice"), 0.0),
            coerce_price(params.get("maxPrice"), float(settings.catalog_default_max_price)),
        )
        return filters

    def set_search_query(self, query: str) -> None:
        self.search_query = (query or "").strip()

    def set_price_range(self, min_price: int, max_price: int) -> None:
        """Clamp to [0, default max]; inverted bounds are swapped."""
        ceiling = settings.catalog_default_max_price
        low = min(max(int(min_price), 0), ceiling)
        high = min(max(int(max_price), 0), ceiling)
        if low > high:
            low, high = high, low
        self.min_price = low
        self.max_price = high

    def reset_filters(self) -> None:
        self.search_query = ""
        self.min_price = 0
        self.max_price = settings.catalog_default_max_price

    def to_query_params(self) -> Dict[str, str]:
        """Catalog query parameters; values at their defaults are left out."""
        params: Dict[str, str] = {}
        if self.search_query:
            params["searchQuery"] = self.search_query
        if self.min_price > 0:
            params["minPrice"] = str(self.min_price)
        if self.max_price < settings.catalog_default_max_price:
            params["maxPrice"] = str(self.max_price)
        return params
