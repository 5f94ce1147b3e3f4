"""Tests for S3 object retrieval, using botocore's Stubber instead of AWS."""

import io
from unittest import mock

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import RetrievalError
from flowlog_indexer.storage import S3ObjectStore


@pytest.fixture
def s3_store():
    session = boto3.session.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    return S3ObjectStore(request_timeout=5.0, session=session)


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


class TestFetch:
    def test_returns_full_object(self, s3_store):
        client = s3_store.client_for("eu-west-1")
        with Stubber(client) as stub:
            stub.add_response(
                "get_object",
                {"Body": _body(b"\x1f\x8bpayload")},
                expected_params={"Bucket": "logs", "Key": "a.log.gz"},
            )
            data = s3_store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(None))
            stub.assert_no_pending_responses()
        assert data == b"\x1f\x8bpayload"

    def test_client_error_wrapped(self, s3_store):
        client = s3_store.client_for("eu-west-1")
        with Stubber(client) as stub:
            stub.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
            with pytest.raises(RetrievalError, match="'a.log.gz'.*'logs'"):
                s3_store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(None))

    def test_expired_deadline_makes_no_request(self, s3_store):
        client = s3_store.client_for("eu-west-1")
        with Stubber(client) as stub:
            with pytest.raises(RetrievalError, match="deadline exceeded"):
                s3_store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(0))
            stub.assert_no_pending_responses()


class TestClientPerRegion:
    def test_client_reused_for_same_region(self, s3_store):
        assert s3_store.client_for("eu-west-1") is s3_store.client_for("eu-west-1")

    def test_client_scoped_to_region(self, s3_store):
        eu = s3_store.client_for("eu-west-1")
        us = s3_store.client_for("us-east-1")
        assert eu is not us
        assert eu.meta.region_name == "eu-west-1"
        assert us.meta.region_name == "us-east-1"

    def test_timeouts_applied(self, s3_store):
        client = s3_store.client_for("eu-west-1")
        assert client.meta.config.read_timeout == 5.0
        assert client.meta.config.connect_timeout == 5.0


class TestDeadlineTimeouts:
    def _store(self, request_timeout=30.0):
        session = mock.MagicMock()
        session.client.return_value.get_object.side_effect = lambda **_: {
            "Body": _body(b"data")
        }
        return S3ObjectStore(request_timeout=request_timeout, session=session), session

    def test_socket_timeouts_capped_by_remaining_time(self):
        store, session = self._store()

        assert store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(2.0)) == b"data"

        config = session.client.call_args.kwargs["config"]
        assert config.read_timeout <= 2.0
        assert config.connect_timeout <= 2.0

    def test_short_timeout_clients_not_cached(self):
        store, session = self._store()
        store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(2.0))
        store.fetch("logs", "b.log.gz", "eu-west-1", Deadline(2.0))
        assert session.client.call_count == 2

    def test_configured_timeout_without_deadline(self):
        store, session = self._store(request_timeout=30.0)
        store.fetch("logs", "a.log.gz", "eu-west-1", Deadline(None))
        store.fetch("logs", "b.log.gz", "eu-west-1", Deadline(None))

        session.client.assert_called_once()
        assert session.client.call_args.kwargs["config"].read_timeout == 30.0
