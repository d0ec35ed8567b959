"""Catalog query: coercion, derivations and repository search."""

import pytest

from trekdesk.db.repositories import TravelPackageRepository
from trekdesk.services.catalog import (
    CatalogQuery,
    SortOption,
    build_pagination,
    effective_price,
    parse_duration_days,
    slugify,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Kedarnath Trek 2025", "kedarnath-trek-2025"),
        ("  Hampta Pass -- Trek!! ", "hampta-pass-trek"),
        ("Valley of Flowers", "valley-of-flowers"),
        ("!!!", ""),
        ("Kedarnath Trek — 2025!", "kedarnath-trek-2025"),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected
    assert slugify(slugify(name)) == slugify(name)


def test_effective_price_uses_lower_discount_only():
    assert effective_price(5000, 4000) == 4000
    assert effective_price(5000, None) == 5000
    assert effective_price(5000, 0) == 5000
    assert effective_price(5000, 6000) == 5000
    assert effective_price(5000, 5000) == 5000


@pytest.mark.parametrize(
    "label, expected",
    [
        ("5 Days", 5),
        ("5N/6D", 6),
        ("7", 7),
        ("12 days / 11 nights", 12),
        ("", None),
        ("Flexible", None),
    ],
)
def test_parse_duration_days_from_label(label, expected):
    assert parse_duration_days(label) == expected


def test_parse_duration_days_falls_back_to_itinerary():
    itinerary = [
        {"heading": "Day 1: Arrive in Sankri", "description": ""},
        {"heading": "Day 2: Trek to Juda ka Talab", "description": ""},
        {"heading": "Day 2 (contd): Evening walk", "description": ""},
        {"heading": "Day 3: Summit", "description": ""},
    ]
    assert parse_duration_days("Flexible", itinerary) == 3
    assert parse_duration_days(None, []) is None


def test_from_params_defaults_on_bad_input():
    query = CatalogQuery.from_params({
        "pageNumber": "abc",
        "sortBy": "price-asc",
        "minPrice": "-5",
        "maxPrice": "nan",
        "duration": "2-4",
        "difficulty": "easy",
    })
    assert query.page_number == 1
    assert query.sort_by == SortOption.DATE_DESC
    assert query.min_price == 0
    assert query.max_price == 100000
    assert query.duration is None
    assert query.difficulty is None
    assert query.page_size == 12


def test_from_params_reads_valid_values():
    query = CatalogQuery.from_params({
        "pageNumber": "3",
        "searchQuery": "  kedar\x00nath ",
        "sortBy": "title-asc",
        "minPrice": "3000",
        "maxPrice": "4500.5",
        "duration": "30+",
        "difficulty": "Moderate",
    })
    assert query.page_number == 3
    assert query.search_query == "kedarnath"
    assert query.sort_by == SortOption.TITLE_ASC
    assert query.min_price == 3000
    assert query.max_price == 4500.5
    assert query.duration == "30+"
    assert query.difficulty == "Moderate"
    assert query.offset == 24


def test_duration_buckets_are_inclusive_and_30_plus_starts_at_31():
    query = CatalogQuery.from_params({"duration": "4-7"})
    assert [d for d in (3, 4, 7, 8) if query.matches_duration(d)] == [4, 7]
    assert not query.matches_duration(None)

    long_trips = CatalogQuery.from_params({"duration": "30+"})
    assert not long_trips.matches_duration(30)
    assert long_trips.matches_duration(31)

    unfiltered = CatalogQuery.from_params({})
    assert unfiltered.matches_duration(None)


def test_build_pagination():
    assert build_pagination(2, 25, 12) == {
        "currentPage": 2,
        "totalPages": 3,
        "itemsPerPage": 12,
        "totalItems": 25,
        "hasNextPage": True,
        "hasPrevPage": True,
    }
    empty = build_pagination(1, 0, 12)
    assert empty["totalPages"] == 0
    assert not empty["hasNextPage"]
    assert not empty["hasPrevPage"]


# ---------------------------------------------------------------------------
# Repository search
# ---------------------------------------------------------------------------

def _seed(repo, count):
    for i in range(count):
        repo.create({
            "package_name": f"Trek {i:02d}",
            "slug": f"trek-{i:02d}",
            "package_duration": f"{i % 10 + 1} Days",
            "price": 1000 + i * 100,
        })


def test_pagination_covers_every_match_exactly_once(db_session):
    repo = TravelPackageRepository(db_session)
    _seed(repo, 30)

    seen = []
    page = 1
    while True:
        rows, total = repo.search(CatalogQuery.from_params({"pageNumber": str(page)}))
        assert total == 30
        if not rows:
            break
        assert len(rows) <= 12
        seen.extend(r.id for r in rows)
        page += 1

    assert page == 4
    assert len(seen) == 30
    assert len(set(seen)) == 30


def test_pagination_with_duration_filter(db_session):
    repo = TravelPackageRepository(db_session)
    _seed(repo, 30)

    rows, total = repo.search(CatalogQuery.from_params({"duration": "1-3"}))
    assert total == 9
    assert all(parse_duration_days(r.package_duration) <= 3 for r in rows)

    rows, total = repo.search(CatalogQuery.from_params({"duration": "1-3", "pageNumber": "2"}))
    assert rows == []
    assert total == 9


def test_page_past_the_end_is_empty(db_session):
    repo = TravelPackageRepository(db_session)
    _seed(repo, 5)
    rows, total = repo.search(CatalogQuery.from_params({"pageNumber": "9"}))
    assert rows == []
    assert total == 5


def test_title_sort_is_total(db_session):
    repo = TravelPackageRepository(db_session)
    for slug in ("same-a", "same-b", "same-c"):
        repo.create({"package_name": "Same Name", "slug": slug, "price": 100})
    repo.create({"package_name": "another trek", "slug": "another-trek", "price": 100})

    first, _ = repo.search(CatalogQuery.from_params({"sortBy": "title-asc"}))
    second, _ = repo.search(CatalogQuery.from_params({"sortBy": "title-asc"}))
    assert [r.id for r in first] == [r.id for r in second]
    assert first[0].slug == "another-trek"
    same = [r.id for r in first[1:]]
    assert same == sorted(same)


def test_price_filter_uses_effective_price(db_session):
    repo = TravelPackageRepository(db_session)
    repo.create({"package_name": "Discounted", "slug": "discounted", "price": 5000, "discounted_price": 4000})
    repo.create({"package_name": "Plain", "slug": "plain", "price": 4200})

    rows, _ = repo.search(CatalogQuery.from_params({"minPrice": "3000", "maxPrice": "4100"}))
    assert [r.slug for r in rows] == ["discounted"]

    rows, _ = repo.search(CatalogQuery.from_params({"minPrice": "4500", "maxPrice": "5000"}))
    assert rows == []


def test_search_is_case_insensitive_substring_and_escapes_wildcards(db_session):
    repo = TravelPackageRepository(db_session)
    repo.create({"package_name": "Kedarnath Trek", "slug": "kedarnath-trek", "price": 100})
    repo.create({"package_name": "Brahmatal Trek", "slug": "brahmatal-trek", "price": 100})

    rows, total = repo.search(CatalogQuery.from_params({"searchQuery": "KEDAR"}))
    assert total == 1
    assert rows[0].slug == "kedarnath-trek"

    _, total = repo.search(CatalogQuery.from_params({"searchQuery": "%"}))
    assert total == 0
