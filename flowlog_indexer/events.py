"""S3 event notification parsing."""

import logging
from dataclasses import dataclass
from urllib.parse import unquote_plus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    bucket: str
    key: str
    region: str


def parse_s3_event(event: dict) -> list[Notification]:
    """Extract one Notification per object record of an S3 event.

    Object keys arrive URL-encoded and are decoded here. Records without an
    ``s3`` section or an ``awsRegion`` are skipped; the ``s3:TestEvent``
    sent on bucket setup has no records at all.
    """
    notifications = []
    for record in event.get("Records", []):
        s3 = record.get("s3")
        if not s3:
            logger.warning(
                "Skipping non-S3 record: %s", record.get("eventName", record)
            )
            continue
        region = record.get("awsRegion")
        if not region:
            logger.warning(
                "Skipping S3 record without awsRegion: %s",
                s3.get("object", {}).get("key", record),
            )
            continue
        notifications.append(
            Notification(
                bucket=s3["bucket"]["name"],
                key=unquote_plus(s3["object"]["key"]),
                region=region,
            )
        )
    return notifications
