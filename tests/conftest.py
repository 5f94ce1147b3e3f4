"""Shared fixtures: sample flow logs and in-memory fakes for S3 and OpenSearch."""

import datetime
import gzip

import pytest

from flowlog_indexer.config import Config
from flowlog_indexer.errors import RetrievalError

HEADER = (
    "version account-id interface-id srcaddr dstaddr srcport dstport protocol "
    "packets bytes start end action log-status instance-id pkt-srcaddr "
    "pkt-dstaddr subnet-id type vpc-id"
)
OK_ROW = (
    "2 1 eni-1 10.0.0.1 10.0.0.2 1 2 6 5 100 1000 1100 ACCEPT OK "
    "instance-1 10.0.0.1 10.0.0.2 subnet-1 IPv4 vpc-1"
)
NODATA_ROW = OK_ROW.replace(" OK ", " NODATA ")

TODAY = datetime.date(2026, 10, 17)


def make_log(*rows: str, header: str = HEADER) -> bytes:
    """Gzip a flow log made of *header* followed by *rows*."""
    text = "\n".join((header,) + rows) + "\n"
    return gzip.compress(text.encode("utf-8"))


class FakeObjectStore:
    """ObjectStore serving bytes from a dict keyed by (bucket, key)."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.fetched = []

    def fetch(self, bucket, key, region, deadline):
        self.fetched.append((bucket, key, region))
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise RetrievalError(f"unable to download {key!r} from bucket {bucket!r}")


class FakeIndexClient:
    """IndexClient keeping indices and documents in memory."""

    def __init__(self, acknowledge=True):
        self.acknowledge = acknowledge
        self.indices = {}
        self.exists_calls = []
        self.create_calls = []
        self.bulk_calls = []
        self.flush_calls = []
        self.fail_exists = None
        self.fail_bulk = None
        self.fail_flush = None

    def index_exists(self, index, timeout):
        self.exists_calls.append(index)
        if self.fail_exists:
            raise self.fail_exists
        return index in self.indices

    def create_index(self, index, body, timeout):
        self.create_calls.append((index, body))
        if self.acknowledge:
            self.indices[index] = []
        return self.acknowledge

    def bulk_index(self, index, documents, timeout):
        self.bulk_calls.append((index, list(documents)))
        if self.fail_bulk:
            raise self.fail_bulk
        self.indices.setdefault(index, []).extend(documents)
        return len(documents)

    def flush(self, index, timeout):
        self.flush_calls.append(index)
        if self.fail_flush:
            raise self.fail_flush

    @property
    def network_calls(self) -> int:
        return (
            len(self.exists_calls)
            + len(self.create_calls)
            + len(self.bulk_calls)
            + len(self.flush_calls)
        )


@pytest.fixture
def config():
    return Config(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret",
        es_host="https://search.example.com",
        es_region="eu-west-1",
        index_prefix="flowlogs",
    )


@pytest.fixture
def index_client():
    return FakeIndexClient()


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def env(monkeypatch):
    """A complete set of required environment variables."""
    values = {
        "AWS_ACCESS_KEY_ID": "AKIDEXAMPLE",
        "AWS_SECRET_ACCESS_KEY": "secret",
        "ES_HOST": "https://search.example.com",
        "ES_REGION": "eu-west-1",
        "ES_INDEX": "flowlogs",
    }
    for name in ("AWS_SESSION_TOKEN", "ES_SERVICE", "REQUEST_TIMEOUT", "LOG_LEVEL", "CONFIG_PATH"):
        monkeypatch.delenv(name, raising=False)
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values
