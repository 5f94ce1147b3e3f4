"""Dated index names and create-with-mapping on first use."""

import datetime
import logging
import threading

from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import IndexProvisionError
from flowlog_indexer.search_client import IndexClient

logger = logging.getLogger(__name__)

INDEX_MAPPING = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
    },
    "mappings": {
        "properties": {
            "start": {"type": "date", "format": "epoch_second"},
            "end": {"type": "date", "format": "epoch_second"},
            "srcaddr": {"type": "ip"},
            "dstaddr": {"type": "ip"},
            "pkt-srcaddr": {"type": "ip"},
            "pkt-dstaddr": {"type": "ip"},
            "bytes": {"type": "integer"},
            "packets": {"type": "integer"},
            "dstport": {"type": "integer"},
            "srcport": {"type": "integer"},
        }
    },
}


def index_name(prefix: str, bucket: str, day: datetime.date) -> str:
    """Return ``{prefix}-{bucket}-{YYYY-MM-DD}``."""
    return f"{prefix}-{bucket}-{day.isoformat()}"


class IndexProvisioner:
    """Makes sure an index exists with INDEX_MAPPING before anything is written.

    Names confirmed once are remembered for the lifetime of the provisioner,
    so each index is checked at most once per pipeline run. Calls for the
    same name are serialized.
    """

    def __init__(self, client: IndexClient, request_timeout: float = 30.0):
        self._client = client
        self._request_timeout = request_timeout
        self._confirmed: set[str] = set()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def ensure(self, name: str, deadline: Deadline) -> bool:
        """Guarantee *name* exists. Return True if this call created it."""
        with self._lock_for(name):
            if name in self._confirmed:
                return False

            deadline.check(f"checking index {name}", IndexProvisionError)
            timeout = deadline.timeout(self._request_timeout)
            if self._client.index_exists(name, timeout):
                self._confirmed.add(name)
                return False

            deadline.check(f"creating index {name}", IndexProvisionError)
            timeout = deadline.timeout(self._request_timeout)
            if not self._client.create_index(name, INDEX_MAPPING, timeout):
                raise IndexProvisionError(f"index creation not acknowledged: {name}")

            self._confirmed.add(name)
            logger.info("Created index %s", name)
            return True

    @property
    def confirmed(self) -> frozenset:
        return frozenset(self._confirmed)
