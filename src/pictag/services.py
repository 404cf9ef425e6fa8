"""Wires configuration and backends into the pipeline components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pictag.pipeline.catalog import MetadataCatalog
from pictag.pipeline.classifier import ClassifierAdapter
from pictag.pipeline.ingestor import Ingestor

if TYPE_CHECKING:
    from pictag.config import Settings
    from pictag.pipeline.catalog import RecordRepository
    from pictag.pipeline.classifier import LabelDetector
    from pictag.pipeline.ingestor import ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    """Pipeline components shared by all requests."""

    ingestor: Ingestor
    catalog: MetadataCatalog


def build_services(
    settings: Settings,
    *,
    object_store: ObjectStore,
    label_detector: LabelDetector,
    repository: RecordRepository,
) -> Services:
    """Assemble the ingestor and catalog from explicit collaborators."""
    catalog = MetadataCatalog(repository)
    classifier = ClassifierAdapter(
        label_detector,
        max_labels=settings.max_labels,
        min_confidence=settings.min_confidence,
    )
    ingestor = Ingestor(
        object_store,
        classifier,
        catalog,
        bucket=settings.bucket_name,
        upload_prefix=settings.upload_prefix,
    )
    return Services(ingestor=ingestor, catalog=catalog)


def build_services_from_settings(settings: Settings) -> Services:
    """Build services against the backend selected by ``settings.backend``."""
    if settings.backend == "memory":
        from pictag.backends.memory import MemoryBackends

        backends = MemoryBackends()
        logger.info("Using in-memory backends")
    else:
        from pictag.backends.aws import build_aws_backends

        backends = build_aws_backends(settings)

    return build_services(
        settings,
        object_store=backends.object_store,
        label_detector=backends.label_detector,
        repository=backends.repository,
    )
