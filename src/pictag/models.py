"""Domain types shared by the ingestion pipeline and the catalog."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StorageLocation:
    """Where an uploaded image lives in the object store."""

    bucket: str
    key: str


@dataclass(frozen=True)
class ImageRecord:
    """Metadata for a single ingested image.

    Records are created once by the ingestor and never mutated. ``labels``
    holds lower-cased label names in the order the detector returned them.
    """

    id: str
    storage_reference: str
    original_file_name: str
    labels: tuple[str, ...] = ()
