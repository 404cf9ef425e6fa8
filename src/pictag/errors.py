"""Pipeline error taxonomy."""

from __future__ import annotations


class PictagError(Exception):
    """Base class for pipeline errors."""


class IngestFailure(PictagError):
    """Writing the uploaded bytes to the object store failed.

    No record exists for the image and classification was not attempted.
    """

    def __init__(self, message: str, *, image_id: str | None = None, key: str | None = None) -> None:
        super().__init__(message)
        self.image_id = image_id
        self.key = key


class ClassificationError(PictagError):
    """The label detector failed. Returned by the classifier adapter, never raised past it."""


class CatalogWriteFailure(PictagError):
    """Persisting a finished record failed.

    The object already written to storage stays behind as an orphan;
    ``storage_reference`` points at it.
    """

    def __init__(self, message: str, *, image_id: str, storage_reference: str) -> None:
        super().__init__(message)
        self.image_id = image_id
        self.storage_reference = storage_reference
