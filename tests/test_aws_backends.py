"""Tests for the boto3-backed collaborators."""

from __future__ import annotations

import io
from unittest.mock import MagicMock, patch

import pytest
from boto3.dynamodb.conditions import Attr

from pictag.backends.aws import (
    DynamoRecordRepository,
    RekognitionLabelDetector,
    S3ObjectStore,
    build_aws_backends,
)
from pictag.config import Settings
from pictag.pipeline.catalog import ContainsLabel, MatchAll
from pictag.pipeline.classifier import DetectedLabel


class TestS3ObjectStore:
    def test_put_object_arguments(self) -> None:
        client = MagicMock()
        body = io.BytesIO(b"data")
        S3ObjectStore(client, region="eu-west-1").put("bucket", "uploads/a.jpg", body, 4, "image/jpeg")

        client.put_object.assert_called_once_with(
            Bucket="bucket",
            Key="uploads/a.jpg",
            Body=body,
            ContentLength=4,
            ContentType="image/jpeg",
        )

    def test_resolve_url_virtual_hosted(self) -> None:
        store = S3ObjectStore(MagicMock(), region="eu-west-1")
        url = store.resolve_url("bucket", "uploads/1234-my photo.jpg")
        assert url == "https://bucket.s3.eu-west-1.amazonaws.com/uploads/1234-my%20photo.jpg"

    def test_resolve_url_custom_endpoint(self) -> None:
        store = S3ObjectStore(MagicMock(), region="us-east-1", endpoint_url="http://localhost:9000/")
        assert store.resolve_url("bucket", "uploads/a.jpg") == "http://localhost:9000/bucket/uploads/a.jpg"

    def test_put_errors_propagate(self) -> None:
        client = MagicMock()
        client.put_object.side_effect = OSError("socket closed")
        with pytest.raises(OSError, match="socket closed"):
            S3ObjectStore(client, region="us-east-1").put("b", "k", io.BytesIO(), 0, "image/png")


class TestRekognitionLabelDetector:
    def test_request_and_confidence_conversion(self) -> None:
        client = MagicMock()
        client.detect_labels.return_value = {
            "Labels": [
                {"Name": "Cat", "Confidence": 95.5},
                {"Name": "Pet", "Confidence": 71.0},
            ]
        }

        labels = RekognitionLabelDetector(client).detect_labels("bucket", "uploads/a.jpg", 10, 0.70)

        client.detect_labels.assert_called_once_with(
            Image={"S3Object": {"Bucket": "bucket", "Name": "uploads/a.jpg"}},
            MaxLabels=10,
            MinConfidence=pytest.approx(70.0),
        )
        assert labels == [DetectedLabel("Cat", pytest.approx(0.955)), DetectedLabel("Pet", pytest.approx(0.71))]

    def test_no_labels(self) -> None:
        client = MagicMock()
        client.detect_labels.return_value = {}
        assert RekognitionLabelDetector(client).detect_labels("b", "k", 10, 0.7) == []


class TestDynamoRecordRepository:
    def test_put_item(self) -> None:
        table = MagicMock()
        item = {"imageId": "1", "imageUrl": "u", "originalFileName": "f", "labels": ["cat"]}
        DynamoRecordRepository(table).put(item)
        table.put_item.assert_called_once_with(Item=item)

    def test_scan_follows_pagination(self) -> None:
        table = MagicMock()
        table.scan.side_effect = [
            {"Items": [{"imageId": "1"}], "LastEvaluatedKey": {"imageId": "1"}},
            {"Items": [{"imageId": "2"}]},
        ]

        items = list(DynamoRecordRepository(table).scan_where(MatchAll()))

        assert [item["imageId"] for item in items] == ["1", "2"]
        assert table.scan.call_count == 2
        assert table.scan.call_args_list[1].kwargs == {"ExclusiveStartKey": {"imageId": "1"}}

    def test_contains_label_becomes_filter_expression(self) -> None:
        table = MagicMock()
        table.scan.return_value = {"Items": []}

        list(DynamoRecordRepository(table).scan_where(ContainsLabel("cat")))

        assert table.scan.call_args.kwargs["FilterExpression"] == Attr("labels").contains("cat")

    def test_unknown_predicate_rejected(self) -> None:
        with pytest.raises(TypeError, match="Unsupported predicate"):
            list(DynamoRecordRepository(MagicMock()).scan_where(object()))  # type: ignore[arg-type]


class TestBuildAwsBackends:
    @patch("pictag.backends.aws.boto3.session.Session")
    def test_clients_share_one_session(self, mock_session_cls: MagicMock) -> None:
        session = mock_session_cls.return_value
        settings = Settings(
            aws_region="eu-central-1",
            aws_profile="dev",
            s3_endpoint_url="http://localhost:4566",
            table_name="Images",
        )

        backends = build_aws_backends(settings)

        mock_session_cls.assert_called_once_with(profile_name="dev", region_name="eu-central-1")
        session.client.assert_any_call("s3", endpoint_url="http://localhost:4566")
        session.client.assert_any_call("rekognition", endpoint_url=None)
        session.resource.assert_called_once_with("dynamodb", endpoint_url=None)
        session.resource.return_value.Table.assert_called_once_with("Images")
        assert backends.object_store.resolve_url("b", "k") == "http://localhost:4566/b/k"
