"""Lambda entry point: S3 object-created notifications in, indexed flow logs out."""

import logging

import boto3

from flowlog_indexer.config import Config, load_config
from flowlog_indexer.deadline import Deadline
from flowlog_indexer.errors import ConfigurationError
from flowlog_indexer.events import parse_s3_event
from flowlog_indexer.pipeline import IngestPipeline, summarize
from flowlog_indexer.search_client import OpenSearchIndexClient
from flowlog_indexer.storage import S3ObjectStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    # The Lambda runtime installs its own root handler, so basicConfig only
    # takes effect when running locally.
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def build_pipeline(config: Config) -> IngestPipeline:
    """Wire the production S3 store and OpenSearch client into a pipeline."""
    session = boto3.session.Session(
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        aws_session_token=config.session_token,
    )
    return IngestPipeline(
        config,
        store=S3ObjectStore(request_timeout=config.request_timeout, session=session),
        index_client=OpenSearchIndexClient.from_config(config),
    )


def lambda_handler(event, context, pipeline_factory=build_pipeline, environ=None):
    """Index every flow log object named in *event*.

    Raises ConfigurationError before touching any object when a required
    setting is missing. Per-object failures are logged and reported in the
    returned summary.
    """
    try:
        config = load_config(environ)
    except ConfigurationError as exc:
        configure_logging()
        logger.error("Aborting invocation: %s", exc)
        raise

    configure_logging(config.log_level)
    notifications = parse_s3_event(event)
    logger.info("Received %d object notification(s)", len(notifications))

    pipeline = pipeline_factory(config)
    outcomes = pipeline.run(notifications, Deadline.from_lambda_context(context))
    return summarize(outcomes)
