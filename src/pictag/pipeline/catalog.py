"""Metadata catalog: persistence and label queries over image records.

Records are stored through a small repository interface so the query
contract does not depend on any one store's query language. Every query
is a full scan filtered by a predicate; a label -> record-id index would
be the first thing to add if the catalog grows large.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from pictag.models import ImageRecord

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)

Item = dict[str, Any]


# ---------------------------------------------------------------------------
# Wire representation
# ---------------------------------------------------------------------------


def record_to_item(record: ImageRecord) -> Item:
    """Serialize a record into its stored form."""
    return {
        "imageId": record.id,
        "imageUrl": record.storage_reference,
        "originalFileName": record.original_file_name,
        "labels": list(record.labels),
    }


def item_to_record(item: Mapping[str, Any]) -> ImageRecord:
    """Deserialize a stored item. A missing ``labels`` attribute means no labels."""
    return ImageRecord(
        id=str(item["imageId"]),
        storage_reference=str(item.get("imageUrl", "")),
        original_file_name=str(item.get("originalFileName", "")),
        labels=tuple(str(label) for label in item.get("labels") or ()),
    )


# ---------------------------------------------------------------------------
# Scan predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchAll:
    """Selects every item."""

    def matches(self, item: Mapping[str, Any]) -> bool:
        return True


@dataclass(frozen=True)
class ContainsLabel:
    """Selects items whose label list holds exactly ``label``."""

    label: str

    def matches(self, item: Mapping[str, Any]) -> bool:
        return self.label in (item.get("labels") or ())


Predicate = MatchAll | ContainsLabel


class RecordRepository(Protocol):
    """Protocol for the backing metadata store."""

    def put(self, item: Item) -> None:
        """Store an item, keyed by its ``imageId``."""
        ...

    def scan_where(self, predicate: Predicate) -> Iterator[Item]:
        """Yield every stored item the predicate selects."""
        ...


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def normalize_query(label: str | None) -> str:
    """Return the form a search label is matched in (trimmed, lower-case)."""
    return (label or "").strip().lower()


class MetadataCatalog:
    """Stores image records and answers label queries."""

    def __init__(self, repository: RecordRepository) -> None:
        self._repository = repository

    def save(self, record: ImageRecord) -> None:
        """Persist a new record. One writer per id is assumed."""
        self._repository.put(record_to_item(record))
        logger.info("Saved metadata for image %s", record.id)

    def find_by_label(self, label: str | None) -> list[ImageRecord]:
        """Return every record carrying the normalized label as an exact token.

        Blank input returns an empty list without querying the store.
        """
        normalized = normalize_query(label)
        if not normalized:
            return []

        records = [item_to_record(item) for item in self._repository.scan_where(ContainsLabel(normalized))]
        logger.info("Search for %r matched %d records", normalized, len(records))
        return records

    def all_distinct_labels(self) -> set[str]:
        """Return the union of labels across all stored records."""
        labels: set[str] = set()
        for item in self._repository.scan_where(MatchAll()):
            labels.update(item_to_record(item).labels)
        return labels
