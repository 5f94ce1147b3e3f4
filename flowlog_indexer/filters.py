"""Filter predicates for flow log records."""

from typing import Iterable

from flowlog_indexer.models import FlowLogRecord


def is_indexable(record: FlowLogRecord) -> bool:
    """True for accepted IPv4 traffic whose log status is OK."""
    return (
        record.log_status == "OK"
        and record.type == "IPv4"
        and record.action == "ACCEPT"
    )


def split_indexable(
    records: Iterable[FlowLogRecord],
) -> tuple[list[FlowLogRecord], int]:
    """Return (eligible records in order, number of records dropped)."""
    eligible = []
    skipped = 0
    for record in records:
        if is_indexable(record):
            eligible.append(record)
        else:
            skipped += 1
    return eligible, skipped
