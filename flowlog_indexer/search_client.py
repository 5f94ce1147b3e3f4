"""Operations the pipeline needs from the search service.

``IndexClient`` is the capability the provisioner and loader depend on.
``OpenSearchIndexClient`` implements it with opensearch-py and SigV4
request signing so it can talk to an AWS-managed domain. Library
exceptions are translated into the pipeline's error types here.
"""

import logging
import sys
from typing import Iterable, Protocol

from opensearchpy import OpenSearch, RequestsHttpConnection, helpers
from opensearchpy.exceptions import OpenSearchException, RequestError
from requests_aws4auth import AWS4Auth

from flowlog_indexer.config import Config
from flowlog_indexer.errors import BulkIndexError, FlushError, IndexProvisionError

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "resource_already_exists_exception"


class IndexClient(Protocol):
    def index_exists(self, index: str, timeout: float) -> bool: ...

    def create_index(self, index: str, body: dict, timeout: float) -> bool:
        """Create *index*; return the ``acknowledged`` flag of the response."""
        ...

    def bulk_index(self, index: str, documents: list[dict], timeout: float) -> int:
        """Index all *documents* in one bulk request; return the success count."""
        ...

    def flush(self, index: str, timeout: float) -> None: ...


def build_opensearch(config: Config) -> OpenSearch:
    """Create an opensearch-py client signed with the configured credentials."""
    auth = AWS4Auth(
        config.access_key_id,
        config.secret_access_key,
        config.es_region,
        config.es_service,
        session_token=config.session_token,
    )
    return OpenSearch(
        hosts=[config.es_host],
        http_auth=auth,
        use_ssl=config.es_host.startswith("https://"),
        verify_certs=True,
        connection_class=RequestsHttpConnection,
        timeout=config.request_timeout,
        # managed domains hide their node addresses
        sniff_on_start=False,
        sniff_on_connection_fail=False,
    )


class OpenSearchIndexClient:
    """IndexClient backed by an ``opensearchpy.OpenSearch`` instance."""

    def __init__(self, client: OpenSearch):
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> "OpenSearchIndexClient":
        return cls(build_opensearch(config))

    def index_exists(self, index: str, timeout: float) -> bool:
        try:
            return bool(
                self._client.indices.exists(index=index, request_timeout=timeout)
            )
        except OpenSearchException as exc:
            raise IndexProvisionError(
                f"failed to check if index {index!r} exists: {exc}"
            ) from exc

    def create_index(self, index: str, body: dict, timeout: float) -> bool:
        try:
            response = self._client.indices.create(
                index=index, body=body, request_timeout=timeout
            )
        except RequestError as exc:
            if exc.error == ALREADY_EXISTS:
                logger.info("Index %s was created concurrently", index)
                return True
            raise IndexProvisionError(
                f"failed to create index {index!r}: {exc}"
            ) from exc
        except OpenSearchException as exc:
            raise IndexProvisionError(
                f"failed to create index {index!r}: {exc}"
            ) from exc
        return bool(response.get("acknowledged", False))

    def bulk_index(self, index: str, documents: list[dict], timeout: float) -> int:
        try:
            success, _errors = helpers.bulk(
                self._client,
                _index_actions(index, documents),
                # one request for the whole object
                chunk_size=max(len(documents), 1),
                max_chunk_bytes=sys.maxsize,
                max_retries=0,
                request_timeout=timeout,
            )
        except helpers.BulkIndexError as exc:
            first = exc.errors[0] if exc.errors else None
            raise BulkIndexError(
                f"{len(exc.errors)} document(s) rejected by {index!r}; first: {first}"
            ) from exc
        except OpenSearchException as exc:
            raise BulkIndexError(
                f"failed to bulk index entries into {index!r}: {exc}"
            ) from exc
        return success

    def flush(self, index: str, timeout: float) -> None:
        try:
            self._client.indices.flush(index=index, request_timeout=timeout)
        except OpenSearchException as exc:
            raise FlushError(f"failed to flush index {index!r}: {exc}") from exc


def _index_actions(index: str, documents: Iterable[dict]):
    for doc in documents:
        yield {"_op_type": "index", "_index": index, "_source": doc}
