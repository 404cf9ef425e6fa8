"""Ingestion pipeline: object store write -> classification -> catalog write.

The three steps are not transactional. If the catalog write fails the
uploaded object is left in the bucket with no record pointing at it;
such objects are invisible to search.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, BinaryIO, Protocol

from pictag.errors import CatalogWriteFailure, ClassificationError, IngestFailure
from pictag.models import ImageRecord, StorageLocation
from pictag.pipeline.classifier import ClassificationOutcome

if TYPE_CHECKING:
    from pictag.pipeline.catalog import MetadataCatalog
    from pictag.pipeline.classifier import ClassifierAdapter

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Protocol for the blob store holding uploaded images."""

    def put(self, bucket: str, key: str, body: BinaryIO, length: int, content_type: str) -> None:
        """Write ``length`` bytes from ``body`` under ``bucket``/``key``."""
        ...

    def resolve_url(self, bucket: str, key: str) -> str:
        """Return the canonical retrieval URL for a stored object."""
        ...


def storage_key(prefix: str, image_id: str, original_file_name: str) -> str:
    """Build the object key for an upload, e.g. ``uploads/<id>-photo.jpg``."""
    return f"{prefix}{image_id}-{original_file_name}"


class Ingestor:
    """Runs a single upload through storage, classification and the catalog."""

    def __init__(
        self,
        object_store: ObjectStore,
        classifier: ClassifierAdapter,
        catalog: MetadataCatalog,
        *,
        bucket: str,
        upload_prefix: str = "uploads/",
    ) -> None:
        self._object_store = object_store
        self._classifier = classifier
        self._catalog = catalog
        self._bucket = bucket
        self._upload_prefix = upload_prefix

    def ingest(
        self,
        body: BinaryIO,
        content_length: int,
        content_type: str,
        original_file_name: str,
    ) -> ImageRecord:
        """Store, classify and catalog an uploaded image.

        Args:
            body: Readable stream of the image bytes.
            content_length: Declared size of the stream in bytes.
            content_type: MIME type recorded on the stored object.
            original_file_name: Client-supplied file name, kept for display.

        Returns:
            The persisted record.

        Raises:
            IngestFailure: The object store write failed. Nothing else ran.
            CatalogWriteFailure: The record could not be saved. The stored
                object is left orphaned.
        """
        image_id = str(uuid.uuid4())
        key = storage_key(self._upload_prefix, image_id, original_file_name)

        try:
            self._object_store.put(self._bucket, key, body, content_length, content_type)
            image_url = self._object_store.resolve_url(self._bucket, key)
        except Exception as exc:
            logger.exception("Upload failed for image %s (key=%s)", image_id, key)
            raise IngestFailure(f"Failed to store image {image_id}", image_id=image_id, key=key) from exc
        logger.info("Uploaded image %s to %s", image_id, image_url)

        location = StorageLocation(bucket=self._bucket, key=key)
        try:
            outcome = self._classifier.classify(location)
        except Exception as exc:  # noqa: BLE001
            error = ClassificationError(f"Classifier failed for image {image_id}")
            error.__cause__ = exc
            outcome = ClassificationOutcome(error=error)
        if outcome.ok:
            labels = outcome.labels
            logger.info("Labels for image %s: %s", image_id, list(labels))
        else:
            # Store the image unlabeled rather than failing the upload.
            labels = ()
            logger.warning("Storing image %s without labels: %s", image_id, outcome.error)

        record = ImageRecord(
            id=image_id,
            storage_reference=image_url,
            original_file_name=original_file_name,
            labels=labels,
        )

        try:
            self._catalog.save(record)
        except Exception as exc:
            logger.exception("Catalog write failed for image %s; object %s left orphaned", image_id, image_url)
            raise CatalogWriteFailure(
                f"Failed to save metadata for image {image_id}",
                image_id=image_id,
                storage_reference=image_url,
            ) from exc

        return record
