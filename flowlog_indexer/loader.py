"""Bulk loader: one bulk write per source object, followed by a flush."""

import logging
from dataclasses import dataclass
from typing import Iterable

from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import BulkIndexError, FlushError
from flowlog_indexer.filters import split_indexable
from flowlog_indexer.models import FlowLogRecord
from flowlog_indexer.search_client import IndexClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    indexed: int = 0
    skipped: int = 0


class BulkLoader:
    """Writes the indexable records of one object into an index."""

    def __init__(self, client: IndexClient, request_timeout: float = 30.0):
        self._client = client
        self._request_timeout = request_timeout

    def load(
        self, index: str, records: Iterable[FlowLogRecord], deadline: Deadline
    ) -> LoadResult:
        """Bulk index eligible *records* into *index* and flush it.

        Records that fail the filter are dropped and counted. When nothing
        is eligible no request is sent at all.
        """
        eligible, skipped = split_indexable(records)
        if skipped:
            logger.debug("Skipped %d record(s) for %s", skipped, index)
        if not eligible:
            return LoadResult(indexed=0, skipped=skipped)

        deadline.check(f"bulk indexing into {index}", BulkIndexError)
        documents = [record.to_document() for record in eligible]
        indexed = self._client.bulk_index(
            index, documents, deadline.timeout(self._request_timeout)
        )

        # Flush to make sure the documents got written.
        deadline.check(f"flushing {index}", FlushError)
        self._client.flush(index, deadline.timeout(self._request_timeout))

        return LoadResult(indexed=indexed, skipped=skipped)
