"""AWS implementations of the pipeline's backing services.

S3 holds the uploaded bytes, Rekognition detects labels and DynamoDB
stores the metadata records. Credentials come from boto3's default
chain (environment, shared config/profile, instance role).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import boto3
from boto3.dynamodb.conditions import Attr

from pictag.pipeline.catalog import ContainsLabel, MatchAll
from pictag.pipeline.classifier import DetectedLabel

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import BinaryIO

    from pictag.config import Settings
    from pictag.pipeline.catalog import Item, Predicate

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """Object store backed by an S3 (or S3-compatible) client."""

    def __init__(self, client: Any, *, region: str, endpoint_url: str | None = None) -> None:
        self._client = client
        self._region = region
        self._endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None

    def put(self, bucket: str, key: str, body: BinaryIO, length: int, content_type: str) -> None:
        self._client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentLength=length,
            ContentType=content_type,
        )

    def resolve_url(self, bucket: str, key: str) -> str:
        """Return the object URL: path-style on custom endpoints, virtual-hosted on AWS."""
        quoted = quote(key, safe="/")
        if self._endpoint_url:
            return f"{self._endpoint_url}/{bucket}/{quoted}"
        return f"https://{bucket}.s3.{self._region}.amazonaws.com/{quoted}"


class RekognitionLabelDetector:
    """Label detector backed by Amazon Rekognition DetectLabels."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def detect_labels(self, bucket: str, key: str, max_labels: int, min_confidence: float) -> list[DetectedLabel]:
        # Rekognition expresses confidence as a percentage.
        response = self._client.detect_labels(
            Image={"S3Object": {"Bucket": bucket, "Name": key}},
            MaxLabels=max_labels,
            MinConfidence=min_confidence * 100.0,
        )
        return [
            DetectedLabel(name=label["Name"], confidence=float(label.get("Confidence", 0.0)) / 100.0)
            for label in response.get("Labels", [])
        ]


class DynamoRecordRepository:
    """Record repository backed by a DynamoDB table keyed on ``imageId``."""

    def __init__(self, table: Any) -> None:
        self._table = table

    def put(self, item: Item) -> None:
        self._table.put_item(Item=item)

    def scan_where(self, predicate: Predicate) -> Iterator[Item]:
        """Scan the whole table, following pagination, with the predicate as a filter."""
        scan_kwargs: dict[str, Any] = {}
        if isinstance(predicate, ContainsLabel):
            scan_kwargs["FilterExpression"] = Attr("labels").contains(predicate.label)
        elif not isinstance(predicate, MatchAll):
            raise TypeError(f"Unsupported predicate: {predicate!r}")

        pages = 0
        while True:
            response = self._table.scan(**scan_kwargs)
            pages += 1
            yield from response.get("Items", [])
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_key
        logger.debug("Scanned %s in %d page(s)", self._table.name, pages)


@dataclass(frozen=True)
class AwsBackends:
    """The three AWS-backed collaborators used by the pipeline."""

    object_store: S3ObjectStore
    label_detector: RekognitionLabelDetector
    repository: DynamoRecordRepository


def build_aws_backends(settings: Settings) -> AwsBackends:
    """Create AWS clients from one boto3 session and wrap them."""
    session = boto3.session.Session(
        profile_name=settings.aws_profile,
        region_name=settings.aws_region,
    )
    s3_client = session.client("s3", endpoint_url=settings.s3_endpoint_url)
    rekognition_client = session.client("rekognition", endpoint_url=settings.rekognition_endpoint_url)
    dynamodb = session.resource("dynamodb", endpoint_url=settings.dynamodb_endpoint_url)

    logger.info(
        "Using AWS backends (region=%s, bucket=%s, table=%s)",
        settings.aws_region,
        settings.bucket_name,
        settings.table_name,
    )
    return AwsBackends(
        object_store=S3ObjectStore(s3_client, region=settings.aws_region, endpoint_url=settings.s3_endpoint_url),
        label_detector=RekognitionLabelDetector(rekognition_client),
        repository=DynamoRecordRepository(dynamodb.Table(settings.table_name)),
    )
