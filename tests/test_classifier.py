"""Tests for the classifier adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

from pictag.errors import ClassificationError
from pictag.models import StorageLocation
from pictag.pipeline.classifier import ClassifierAdapter, DetectedLabel

if TYPE_CHECKING:
    from collections.abc import Iterator

LOCATION = StorageLocation(bucket="images", key="uploads/abc-photo.jpg")


def _detector(*labels: tuple[str, float]) -> MagicMock:
    detector = MagicMock()
    detector.detect_labels.return_value = [DetectedLabel(name, conf) for name, conf in labels]
    return detector


class TestClassifierAdapter:
    def test_requests_ten_labels_at_seventy_percent(self) -> None:
        detector = _detector()
        ClassifierAdapter(detector).classify(LOCATION)

        detector.detect_labels.assert_called_once_with("images", "uploads/abc-photo.jpg", 10, 0.70)

    def test_labels_are_lower_cased(self) -> None:
        outcome = ClassifierAdapter(_detector(("Cat", 0.99), ("DOG", 0.91))).classify(LOCATION)

        assert outcome.ok
        assert outcome.labels == ("cat", "dog")

    def test_order_is_preserved(self) -> None:
        outcome = ClassifierAdapter(_detector(("Zebra", 0.99), ("Animal", 0.98), ("Mammal", 0.90))).classify(LOCATION)
        assert outcome.labels == ("zebra", "animal", "mammal")

    def test_low_confidence_labels_are_dropped(self) -> None:
        outcome = ClassifierAdapter(_detector(("Cat", 0.95), ("Sofa", 0.40), ("Rug", 0.70))).classify(LOCATION)
        assert outcome.labels == ("cat", "rug")

    def test_custom_threshold(self) -> None:
        detector = _detector(("Cat", 0.95), ("Sofa", 0.85))
        outcome = ClassifierAdapter(detector, max_labels=3, min_confidence=0.9).classify(LOCATION)

        assert outcome.labels == ("cat",)
        detector.detect_labels.assert_called_once_with("images", "uploads/abc-photo.jpg", 3, 0.9)

    def test_duplicate_names_are_kept(self) -> None:
        outcome = ClassifierAdapter(_detector(("Person", 0.99), ("person", 0.80))).classify(LOCATION)
        assert outcome.labels == ("person", "person")

    def test_detector_error_is_returned_not_raised(self) -> None:
        detector = MagicMock()
        cause = ConnectionError("endpoint unreachable")
        detector.detect_labels.side_effect = cause

        outcome = ClassifierAdapter(detector).classify(LOCATION)

        assert not outcome.ok
        assert outcome.labels == ()
        assert isinstance(outcome.error, ClassificationError)
        assert outcome.error.__cause__ is cause

    def test_error_while_reading_detector_result_is_returned(self) -> None:
        def stream() -> Iterator[DetectedLabel]:
            yield DetectedLabel("Cat", 0.95)
            raise ConnectionError("stream dropped")

        detector = MagicMock()
        detector.detect_labels.return_value = stream()

        outcome = ClassifierAdapter(detector).classify(LOCATION)

        assert not outcome.ok
        assert outcome.labels == ()
        assert isinstance(outcome.error.__cause__, ConnectionError)

    def test_labels_capped_at_max_labels(self) -> None:
        detector = _detector(*((f"Label{i}", 0.99) for i in range(15)))
        outcome = ClassifierAdapter(detector, max_labels=10).classify(LOCATION)

        assert outcome.labels == tuple(f"label{i}" for i in range(10))
