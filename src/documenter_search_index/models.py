"""Data models for documentation search indexes."""

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """Category of a search index record."""

    SECTION = "section"
    PAGE = "page"
    MODULE = "module"
    MACRO = "macro"
    FUNCTION = "function"
    METHOD = "method"
    TYPE = "type"
    CONSTANT = "constant"
    KEYWORD = "keyword"


CATEGORY_VALUES = frozenset(category.value for category in Category)

# Categories a docstring entry may carry.
DOCSTRING_CATEGORIES = tuple(
    category.value for category in Category if category not in (Category.SECTION, Category.PAGE)
)


@dataclass(frozen=True)
class SearchRecord:
    """A single search index entry."""

    location: str
    page: str
    title: str
    text: str
    category: str


@dataclass
class ParsedPage:
    """Records extracted from one documentation source file."""

    path: str
    title: str
    location: str
    records: list[SearchRecord] = field(default_factory=list)


@dataclass
class SearchIndex:
    """Ordered search index records and the variable they are assigned to."""

    records: list[SearchRecord] = field(default_factory=list)
    variable: str = "documenterSearchIndex"

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[SearchRecord]:
        return iter(self.records)

    def pages(self) -> list[str]:
        """Return page names in order of first appearance.

        Returns:
            Distinct page names.
        """
        return list(dict.fromkeys(record.page for record in self.records))

    def category_counts(self) -> dict[str, int]:
        """Count records per category.

        Returns:
            Mapping of category value to number of records.
        """
        return dict(Counter(record.category for record in self.records))
