"""Fetch a whole S3 object into memory."""

import logging
import threading
from typing import Protocol

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import RetrievalError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def fetch(self, bucket: str, key: str, region: str, deadline: Deadline) -> bytes: ...


class S3ObjectStore:
    """ObjectStore backed by boto3, with one S3 client per region."""

    def __init__(self, request_timeout: float = 30.0, session=None):
        self._request_timeout = request_timeout
        self._session = session or boto3.session.Session()
        self._clients: dict = {}
        self._lock = threading.Lock()

    def _build_client(self, region: str, timeout: float):
        return self._session.client(
            "s3",
            region_name=region or None,
            config=BotoConfig(connect_timeout=timeout, read_timeout=timeout),
        )

    def client_for(self, region: str, timeout: float | None = None):
        """Return an S3 client for *region* whose socket timeouts are *timeout*.

        Clients using the configured request timeout are cached per region.
        A shorter *timeout*, left over from a deadline, gets a fresh client.
        """
        if timeout is not None and timeout < self._request_timeout:
            return self._build_client(region, timeout)
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                client = self._build_client(region, self._request_timeout)
                self._clients[region] = client
            return client

    def fetch(self, bucket: str, key: str, region: str, deadline: Deadline) -> bytes:
        """Return the full content of s3://bucket/key from *region*."""
        deadline.check(f"downloading s3://{bucket}/{key}", RetrievalError)
        client = self.client_for(region, deadline.timeout(self._request_timeout))
        try:
            response = client.get_object(Bucket=bucket, Key=key)
            body = response.get("Body")
            if body is None:
                raise RetrievalError(f"s3://{bucket}/{key} returned no body")
            try:
                data = body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as exc:
            raise RetrievalError(
                f"unable to download {key!r} from bucket {bucket!r}: {exc}"
            ) from exc
        logger.debug("Downloaded s3://%s/%s (%d bytes)", bucket, key, len(data))
        return data
