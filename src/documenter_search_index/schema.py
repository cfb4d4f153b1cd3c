"""Schema conformance checks for search index records."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from documenter_search_index.models import CATEGORY_VALUES, SearchRecord

RECORD_FIELDS = ("location", "page", "title", "text", "category")

# Violations quoted in an error message before the rest are summarised.
MAX_REPORTED_VIOLATIONS = 5


class SearchIndexFormatError(ValueError):
    """Raised when a search index file or its records are malformed."""


@dataclass(frozen=True)
class SchemaViolation:
    """A single schema problem found in a record."""

    index: int
    field: str | None
    message: str

    def __str__(self) -> str:
        if self.field is None:
            return f"record {self.index}: {self.message}"
        return f"record {self.index}, field {self.field!r}: {self.message}"


def validate_records(records: Sequence[Any]) -> list[SchemaViolation]:
    """Check every record for the five string fields and a known category.

    Keys other than the record fields are ignored.

    Args:
        records: Decoded records, normally dicts from the ``docs`` array.

    Returns:
        Violations in record order; empty when the sequence conforms.
    """
    violations: list[SchemaViolation] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            violations.append(SchemaViolation(index, None, f"expected an object, got {type(record).__name__}"))
            continue
        for name in RECORD_FIELDS:
            if name not in record:
                violations.append(SchemaViolation(index, name, "missing"))
            elif not isinstance(record[name], str):
                violations.append(SchemaViolation(index, name, f"expected a string, got {type(record[name]).__name__}"))
        category = record.get("category")
        if isinstance(category, str) and category not in CATEGORY_VALUES:
            violations.append(SchemaViolation(index, "category", f"unknown category {category!r}"))
    return violations


def ensure_valid(records: Sequence[Any]) -> None:
    """Raise if any record violates the schema.

    Args:
        records: Decoded records.

    Raises:
        SearchIndexFormatError: If at least one violation is found.
    """
    violations = validate_records(records)
    if not violations:
        return
    details = "; ".join(str(violation) for violation in violations[:MAX_REPORTED_VIOLATIONS])
    remaining = len(violations) - MAX_REPORTED_VIOLATIONS
    if remaining > 0:
        details += f"; and {remaining} more"
    msg = f"Invalid search index records: {details}"
    raise SearchIndexFormatError(msg)


def build_records(records: Sequence[Any]) -> list[SearchRecord]:
    """Validate decoded records and convert them to SearchRecord instances.

    Args:
        records: Decoded records.

    Returns:
        SearchRecord list in input order.
    """
    ensure_valid(records)
    return [SearchRecord(**{name: record[name] for name in RECORD_FIELDS}) for record in records]
