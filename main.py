"""vpc-flowlog-indexer: run the ingestion pipeline outside Lambda.

Either name a single object with --bucket/--key/--region, or replay a saved
S3 event notification with --event.
"""

import json
import sys
from argparse import ArgumentParser

from flowlog_indexer.config import load_config
from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import ConfigurationError
from flowlog_indexer.events import Notification, parse_s3_event
from flowlog_indexer.handler import build_pipeline, configure_logging
from flowlog_indexer.pipeline import summarize


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="flowlog-indexer",
        description="Index gzip VPC flow log objects from S3 into OpenSearch.",
    )
    parser.add_argument("--event", help="Path to a saved S3 event notification (JSON)")
    parser.add_argument("--bucket", help="Source bucket name")
    parser.add_argument("--key", help="Object key inside the bucket")
    parser.add_argument("--region", help="Bucket region")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds (default: none)",
    )
    return parser


def read_notifications(args) -> list[Notification]:
    if args.event:
        with open(args.event, "r") as f:
            return parse_s3_event(json.load(f))
    if not (args.bucket and args.key and args.region):
        raise ValueError("either --event or all of --bucket, --key, --region are required")
    return [Notification(bucket=args.bucket, key=args.key, region=args.region)]


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        notifications = read_notifications(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    configure_logging(config.log_level)
    pipeline = build_pipeline(config)
    outcomes = pipeline.run(notifications, Deadline(args.timeout))

    print(json.dumps(summarize(outcomes), indent=2))
    return 0 if all(o.ok for o in outcomes) else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
