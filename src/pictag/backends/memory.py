"""In-process backends for local development and tests."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import BinaryIO

    from pictag.pipeline.catalog import Item, Predicate
    from pictag.pipeline.classifier import DetectedLabel

logger = logging.getLogger(__name__)


class InMemoryObjectStore:
    """Keeps uploaded bytes in a dict keyed by (bucket, key)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}

    def put(self, bucket: str, key: str, body: BinaryIO, length: int, content_type: str) -> None:
        data = body.read(length)
        if len(data) != length:
            raise OSError(f"Expected {length} bytes for {key}, read {len(data)}")
        with self._lock:
            self.objects[(bucket, key)] = (data, content_type)

    def resolve_url(self, bucket: str, key: str) -> str:
        return f"memory://{bucket}/{key}"


class InMemoryRecordRepository:
    """Dict-backed record repository; scans evaluate the predicate in Python."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Item] = {}

    def put(self, item: Item) -> None:
        with self._lock:
            self._items[item["imageId"]] = copy.deepcopy(item)

    def scan_where(self, predicate: Predicate) -> Iterator[Item]:
        with self._lock:
            snapshot = [copy.deepcopy(item) for item in self._items.values()]
        return (item for item in snapshot if predicate.matches(item))


class NullLabelDetector:
    """Detector that never finds anything; every image is stored unlabeled."""

    def detect_labels(self, bucket: str, key: str, max_labels: int, min_confidence: float) -> list[DetectedLabel]:
        logger.debug("No label detector configured; skipping %s/%s", bucket, key)
        return []


@dataclass(frozen=True)
class MemoryBackends:
    """In-process stand-ins for the three backing services."""

    object_store: InMemoryObjectStore = field(default_factory=InMemoryObjectStore)
    label_detector: NullLabelDetector = field(default_factory=NullLabelDetector)
    repository: InMemoryRecordRepository = field(default_factory=InMemoryRecordRepository)
