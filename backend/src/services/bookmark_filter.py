"""
Client-side style filtering of an already-fetched bookmark list.

The filter is a pure function of its inputs: category and search term are
passed in explicitly as a FilterCriteria value rather than read from shared
state, so the same call always gives the same answer.
"""
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

ALL_CATEGORIES = "all"


class Filterable(Protocol):
    """Anything with the fields the filter looks at (ORM rows and view models alike)."""

    title: str | None
    description: str | None
    category: str | None
    tags: Sequence[str | None] | None


T = TypeVar("T", bound=Filterable)


@dataclass(frozen=True)
class FilterCriteria:
    """Category and free-text term selected by the viewer."""

    category: str = ALL_CATEGORIES
    term: str = ""

    @property
    def normalized_term(self) -> str:
        """Trimmed, lowercased search term ('' when there is nothing to search for)."""
        return (self.term or "").strip().lower()

    @property
    def is_empty(self) -> bool:
        """True when the criteria select everything."""
        return self.category == ALL_CATEGORIES and not self.normalized_term


def _contains(value: str | None, term: str) -> bool:
    return value is not None and term in value.lower()


def matches_category(item: Filterable, category: str) -> bool:
    """Check the category predicate: 'all' matches everything, otherwise exact match."""
    return category == ALL_CATEGORIES or item.category == category


def matches_term(item: Filterable, term: str) -> bool:
    """
    Check the search predicate against title, description and tags.

    Args:
        item: Bookmark-like object.
        term: Already trimmed and lowercased term. Empty matches everything.
    """
    if not term:
        return True
    if _contains(item.title, term) or _contains(item.description, term):
        return True
    tags = item.tags or ()
    return any(_contains(tag, term) for tag in tags)


def filter_bookmarks(bookmarks: list[T], criteria: FilterCriteria) -> list[T]:
    """
    Narrow a bookmark list to the items matching category and search term.

    When the criteria select everything the input list itself is returned.
    Otherwise a new list is returned with the original relative order kept.
    The input list is never mutated.
    """
    if criteria.is_empty:
        return bookmarks

    term = criteria.normalized_term
    return [
        item for item in bookmarks
        if matches_category(item, criteria.category) and matches_term(item, term)
    ]
