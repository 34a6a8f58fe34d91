"""Tests for the pure bookmark filter."""
from dataclasses import dataclass, field

import pytest

from services.bookmark_filter import (
    ALL_CATEGORIES,
    FilterCriteria,
    filter_bookmarks,
    matches_category,
    matches_term,
)


@dataclass
class Item:
    """Minimal bookmark-like object."""

    title: str | None
    description: str | None = None
    category: str | None = None
    tags: list[str | None] | None = field(default_factory=list)


@pytest.fixture
def items() -> list[Item]:
    return [
        Item("Python Tips", "Learn fast", "technology", ["python", "tips"]),
        Item("Cooking", None, "education", []),
        Item("Design Weekly", "Typography and color", "design", ["UI"]),
        Item("Markets", "python-free finance news", "business", None),
    ]


# =============================================================================
# FilterCriteria Tests
# =============================================================================


def test__filter_criteria__defaults_select_everything() -> None:
    assert FilterCriteria().is_empty


def test__filter_criteria__whitespace_term_is_empty() -> None:
    criteria = FilterCriteria(term="   ")
    assert criteria.normalized_term == ""
    assert criteria.is_empty


def test__filter_criteria__normalizes_case_and_whitespace() -> None:
    assert FilterCriteria(term="  PyThOn ").normalized_term == "python"


# =============================================================================
# filter_bookmarks Tests
# =============================================================================


def test__filter_bookmarks__empty_criteria_returns_same_list(items: list[Item]) -> None:
    """With nothing to filter by, the input list itself is returned."""
    result = filter_bookmarks(items, FilterCriteria(ALL_CATEGORIES, ""))
    assert result is items


def test__filter_bookmarks__search_scenario(items: list[Item]) -> None:
    """Title and description matches, case-insensitive."""
    result = filter_bookmarks(items, FilterCriteria(term="PYTHON"))
    assert [i.title for i in result] == ["Python Tips", "Markets"]


def test__filter_bookmarks__category_scenario(items: list[Item]) -> None:
    result = filter_bookmarks(items, FilterCriteria(category="design"))
    assert [i.title for i in result] == ["Design Weekly"]


def test__filter_bookmarks__category_and_term_combine(items: list[Item]) -> None:
    result = filter_bookmarks(items, FilterCriteria(category="business", term="python"))
    assert [i.title for i in result] == ["Markets"]


def test__filter_bookmarks__matches_tags(items: list[Item]) -> None:
    result = filter_bookmarks(items, FilterCriteria(term="ui"))
    assert [i.title for i in result] == ["Design Weekly"]


def test__filter_bookmarks__no_match_returns_empty(items: list[Item]) -> None:
    assert filter_bookmarks(items, FilterCriteria(term="zzz")) == []


def test__filter_bookmarks__preserves_order_and_input(items: list[Item]) -> None:
    """Result is an ordered subsequence; the input is left untouched."""
    before = list(items)
    result = filter_bookmarks(items, FilterCriteria(term="o"))

    assert items == before
    positions = [items.index(i) for i in result]
    assert positions == sorted(positions)


@pytest.mark.parametrize(
    "criteria",
    [
        FilterCriteria(term="python"),
        FilterCriteria(category="education"),
        FilterCriteria(category="technology", term="tips"),
    ],
)
def test__filter_bookmarks__is_idempotent(items: list[Item], criteria: FilterCriteria) -> None:
    once = filter_bookmarks(items, criteria)
    assert filter_bookmarks(once, criteria) == once


@pytest.mark.parametrize(
    "criteria",
    [
        FilterCriteria(term="python"),
        FilterCriteria(category="design"),
        FilterCriteria(category="news", term="x"),
    ],
)
def test__filter_bookmarks__sound_and_complete(
    items: list[Item], criteria: FilterCriteria,
) -> None:
    """Exactly the items satisfying both predicates are kept."""
    result = filter_bookmarks(items, criteria)
    expected = [
        i for i in items
        if matches_category(i, criteria.category)
        and matches_term(i, criteria.normalized_term)
    ]
    assert result == expected


def test__filter_bookmarks__null_fields_never_raise() -> None:
    nulls = [Item(None, None, None, None), Item(None, None, None, [None, "ok"])]

    assert filter_bookmarks(nulls, FilterCriteria(term="ok")) == [nulls[1]]
    assert filter_bookmarks(nulls, FilterCriteria(category="news")) == []


def test__filter_bookmarks__uncategorized_only_under_all() -> None:
    uncategorized = [Item("A", category=None)]
    assert filter_bookmarks(uncategorized, FilterCriteria(category="all", term="a")) == uncategorized
    assert filter_bookmarks(uncategorized, FilterCriteria(category="other")) == []
