"""Search filter state and inline sub-document helpers."""

import pytest

from trekdesk.core.errors import NotFoundError
from trekdesk.services.search_filters import SearchFilters
from trekdesk.services.subdocuments import (
    FAQItem,
    HeadingItem,
    append_item,
    dump_items,
    remove_item,
    update_item,
)


def test_search_filters_defaults_produce_no_params():
    filters = SearchFilters()
    assert filters.to_query_params() == {}


def test_search_filters_clamp_and_swap():
    filters = SearchFilters()
    filters.set_price_range(-100, 250000)
    assert (filters.min_price, filters.max_price) == (0, 100000)

    filters.set_price_range(8000, 3000)
    assert (filters.min_price, filters.max_price) == (3000, 8000)


def test_search_filters_reset():
    filters = SearchFilters()
    filters.set_search_query(" Roopkund ")
    filters.set_price_range(1000, 2000)
    assert filters.to_query_params() == {"searchQuery": "Roopkund", "minPrice": "1000", "maxPrice": "2000"}

    filters.reset_filters()
    assert filters == SearchFilters()


def test_subdocument_edits_return_new_lists():
    items = [{"heading": "Day 1", "description": "Drive"}]
    appended = append_item(items, {"heading": "Day 2", "description": "Trek"})
    assert len(items) == 1
    assert [i["heading"] for i in appended] == ["Day 1", "Day 2"]

    updated = update_item(appended, 1, {"description": "Trek to base camp"})
    assert updated[1] == {"heading": "Day 2", "description": "Trek to base camp"}
    assert appended[1]["description"] == "Trek"

    assert remove_item(updated, 0) == [{"heading": "Day 2", "description": "Trek to base camp"}]
    assert append_item(None, {"q": 1}) == [{"q": 1}]


@pytest.mark.parametrize("index", [-1, 1])
def test_subdocument_bad_index(index):
    with pytest.raises(NotFoundError):
        update_item([{"a": 1}], index, {"a": 2})
    with pytest.raises(NotFoundError):
        remove_item([{"a": 1}], index)


def test_dump_items_drops_blank_records():
    items = [HeadingItem(heading="Day 1", description=""), HeadingItem(), FAQItem(question=" ", answer="")]
    assert dump_items(items) == [{"heading": "Day 1", "description": ""}]
