"""Ingestion pipeline: retrieve, decode, provision, and load one object at a time."""

import datetime
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from flowlog_indexer.config import Config
from flowlog_indexer.deadline import Deadline
from flowlog_indexer.decoder import decode_log
from flowlog_indexer.errors import IngestError
from flowlog_indexer.events import Notification
from flowlog_indexer.loader import BulkLoader
from flowlog_indexer.provisioner import IndexProvisioner, index_name
from flowlog_indexer.search_client import IndexClient
from flowlog_indexer.storage import ObjectStore

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    RETRIEVING = "retrieving"
    DECODING = "decoding"
    PROVISIONING = "provisioning"
    LOADING = "loading"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ObjectOutcome:
    bucket: str
    key: str
    index: str
    stage: Stage
    failed_stage: Stage | None = None
    error: str | None = None
    parsed: int = 0
    indexed: int = 0
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.stage is Stage.DONE


def _utc_today() -> datetime.date:
    return datetime.datetime.now(datetime.timezone.utc).date()


class IngestPipeline:
    """Runs every notified object through the pipeline, sequentially.

    A failure in any stage abandons that object only; the remaining
    notifications are still processed. The provisioner is shared across
    objects so each index name is checked once per run.
    """

    def __init__(
        self,
        config: Config,
        store: ObjectStore,
        index_client: IndexClient,
        today: Callable[[], datetime.date] = _utc_today,
    ):
        self._config = config
        self._store = store
        self._today = today
        self._provisioner = IndexProvisioner(index_client, config.request_timeout)
        self._loader = BulkLoader(index_client, config.request_timeout)

    def run(
        self, notifications: Iterable[Notification], deadline: Deadline | None = None
    ) -> list[ObjectOutcome]:
        deadline = deadline or Deadline(None)
        outcomes = [self.process(n, deadline) for n in notifications]
        logger.info("Invocation summary: %s", summarize(outcomes))
        return outcomes

    def process(self, notification: Notification, deadline: Deadline) -> ObjectOutcome:
        """Process a single object and report how far it got."""
        bucket, key = notification.bucket, notification.key
        index = index_name(self._config.index_prefix, bucket, self._today())
        stage = Stage.RETRIEVING
        parsed = 0

        try:
            raw = self._store.fetch(bucket, key, notification.region, deadline)

            stage = Stage.DECODING
            records = decode_log(raw)
            parsed = len(records)

            stage = Stage.PROVISIONING
            self._provisioner.ensure(index, deadline)

            stage = Stage.LOADING
            result = self._loader.load(index, records, deadline)
        except IngestError as exc:
            logger.error(
                "Failed %s s3://%s/%s: %s", stage.value, bucket, key, exc
            )
            return self._failed(notification, index, stage, exc, parsed)
        except Exception as exc:
            logger.exception(
                "Unexpected error %s s3://%s/%s", stage.value, bucket, key
            )
            return self._failed(notification, index, stage, exc, parsed)

        logger.info(
            "Logfile %r inserted into %s (%d indexed, %d skipped)",
            key,
            index,
            result.indexed,
            result.skipped,
        )
        return ObjectOutcome(
            bucket=bucket,
            key=key,
            index=index,
            stage=Stage.DONE,
            parsed=parsed,
            indexed=result.indexed,
            skipped=result.skipped,
        )

    @staticmethod
    def _failed(notification, index, stage, exc, parsed) -> ObjectOutcome:
        return ObjectOutcome(
            bucket=notification.bucket,
            key=notification.key,
            index=index,
            stage=Stage.FAILED,
            failed_stage=stage,
            error=str(exc) or type(exc).__name__,
            parsed=parsed,
        )


def summarize(outcomes: list[ObjectOutcome]) -> dict:
    """Aggregate counts over a run's outcomes."""
    succeeded = sum(1 for o in outcomes if o.ok)
    return {
        "objects": len(outcomes),
        "succeeded": succeeded,
        "failed": len(outcomes) - succeeded,
        "records_parsed": sum(o.parsed for o in outcomes),
        "documents_indexed": sum(o.indexed for o in outcomes),
        "records_skipped": sum(o.skipped for o in outcomes),
        "failures": [
            {
                "bucket": o.bucket,
                "key": o.key,
                "stage": o.failed_stage.value,
                "error": o.error,
            }
            for o in outcomes
            if not o.ok
        ],
    }
