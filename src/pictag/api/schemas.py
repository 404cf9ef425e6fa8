"""Pydantic response schemas for the Pictag API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from pictag.models import ImageRecord


class ImageRecordResponse(BaseModel):
    """Serialized image record. Field aliases are the wire names."""

    model_config = ConfigDict(populate_by_name=True)

    image_id: str = Field(alias="imageId")
    image_url: str = Field(alias="imageUrl", description="Retrieval URL of the stored image")
    original_file_name: str = Field(alias="originalFileName")
    labels: list[str] = Field(description="Lower-cased labels, highest confidence first")

    @classmethod
    def from_record(cls, record: ImageRecord) -> ImageRecordResponse:
        return cls(
            image_id=record.id,
            image_url=record.storage_reference,
            original_file_name=record.original_file_name,
            labels=list(record.labels),
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    backend: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
