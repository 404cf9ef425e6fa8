"""Label classification adapter.

Wraps an external label detector, applies the confidence threshold and
normalizes label names. Detector failures come back as part of the outcome
so the caller decides how to degrade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from pictag.errors import ClassificationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pictag.models import StorageLocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectedLabel:
    """A single label returned by the detector."""

    name: str
    confidence: float


class LabelDetector(Protocol):
    """Protocol for external label detection services."""

    def detect_labels(
        self, bucket: str, key: str, max_labels: int, min_confidence: float
    ) -> Sequence[DetectedLabel]:
        """Detect labels for a stored image.

        Args:
            bucket: Object store bucket holding the image.
            key: Object key of the image.
            max_labels: Upper bound on the number of labels returned.
            min_confidence: Minimum confidence as a fraction (0.0-1.0).

        Returns:
            Labels sorted by confidence (descending).
        """
        ...


@dataclass(frozen=True)
class ClassificationOutcome:
    """Result of a classification attempt: labels, or the error that prevented them."""

    labels: tuple[str, ...] = ()
    error: ClassificationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ClassifierAdapter:
    """Turns detector output into the normalized label sequence stored on a record."""

    def __init__(self, detector: LabelDetector, *, max_labels: int = 10, min_confidence: float = 0.70) -> None:
        self._detector = detector
        self._max_labels = max_labels
        self._min_confidence = min_confidence

    def classify(self, location: StorageLocation) -> ClassificationOutcome:
        try:
            detected = self._detector.detect_labels(
                location.bucket,
                location.key,
                self._max_labels,
                self._min_confidence,
            )
            # Duplicate names are kept as returned.
            labels = tuple(
                label.name.lower() for label in detected if label.confidence >= self._min_confidence
            )[: self._max_labels]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Label detection failed for %s/%s: %s", location.bucket, location.key, exc)
            error = ClassificationError(f"Label detection failed for {location.key}")
            error.__cause__ = exc
            return ClassificationOutcome(error=error)

        logger.debug("Detected labels for %s: %s", location.key, labels)
        return ClassificationOutcome(labels=labels)
