"""API route definitions.

Handlers are plain ``def`` functions: the pipeline and boto3 block, so
FastAPI runs them in its threadpool.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Query, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from pictag.api.schemas import ErrorResponse, HealthResponse, ImageRecordResponse
from pictag.errors import CatalogWriteFailure, IngestFailure

if TYPE_CHECKING:
    from typing import BinaryIO

    from pictag.config import Settings
    from pictag.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images")
health_router = APIRouter()


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


def _measure(stream: BinaryIO) -> int:
    """Return the byte length of a seekable stream, leaving it rewound."""
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


def _server_error() -> Response:
    return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post(
    "/upload",
    response_model=ImageRecordResponse,
    responses={
        413: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Storage or catalog failure (empty body)"},
    },
    summary="Upload and classify an image",
)
def upload_image(request: Request, file: UploadFile) -> ImageRecordResponse | Response:
    """Store the uploaded image, detect its labels and record its metadata."""
    settings = _get_settings(request)
    size = file.size if file.size is not None else _measure(file.file)
    if size > settings.max_file_size:
        return JSONResponse(
            status_code=413,
            content={"detail": f"File exceeds {settings.max_file_size} bytes"},
        )

    try:
        record = _get_services(request).ingestor.ingest(
            file.file,
            size,
            file.content_type or "application/octet-stream",
            file.filename or "",
        )
    except (IngestFailure, CatalogWriteFailure) as exc:
        logger.error("Failed to upload image: %s", exc)
        return _server_error()
    except Exception:
        logger.exception("Unexpected error during upload")
        return _server_error()

    return ImageRecordResponse.from_record(record)


@router.get(
    "/search",
    response_model=list[ImageRecordResponse],
    summary="Find images carrying a label",
)
def search_images(request: Request, label: Annotated[str, Query()]) -> list[ImageRecordResponse] | Response:
    """Return every image whose labels include ``label`` (case-insensitive, exact token)."""
    try:
        records = _get_services(request).catalog.find_by_label(label)
    except Exception:
        logger.exception("Search failed for label %r", label)
        return _server_error()
    return [ImageRecordResponse.from_record(record) for record in records]


@router.get(
    "/labels",
    response_model=list[str],
    summary="List every distinct label",
)
def list_labels(request: Request) -> list[str] | Response:
    """Return all distinct labels across stored images, sorted."""
    try:
        labels = _get_services(request).catalog.all_distinct_labels()
    except Exception:
        logger.exception("Listing labels failed")
        return _server_error()
    return sorted(labels)


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    return HealthResponse(status="ok", backend=_get_settings(request).backend)
