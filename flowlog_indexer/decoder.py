"""Gunzip a flow log object and parse its rows into records."""

import csv
import gzip
import logging
import zlib
from typing import Generator, Iterable

from flowlog_indexer.errors import DecompressionError, ParseError
from flowlog_indexer.models import COLUMNS, FlowLogRecord, record_from_row

logger = logging.getLogger(__name__)

DELIMITER = " "
GZIP_MAGIC = b"\x1f\x8b"


def gunzip(raw: bytes) -> bytes:
    """Decompress a gzip payload, raising DecompressionError on bad input."""
    # gzip.decompress(b"") returns b"" instead of failing
    if raw[:2] != GZIP_MAGIC:
        raise DecompressionError("not a valid gzip stream: missing gzip header")
    try:
        return gzip.decompress(raw)
    except (gzip.BadGzipFile, EOFError, zlib.error) as exc:
        raise DecompressionError(f"not a valid gzip stream: {exc}") from exc


def iter_records(lines: Iterable[str]) -> Generator[FlowLogRecord, None, None]:
    """Yield one record per data row of a space-delimited flow log.

    The first non-blank row is the header naming the columns. Blank rows
    are skipped. Every data row must have as many cells as the header.
    """
    reader = csv.reader(lines, delimiter=DELIMITER)
    header = None
    try:
        for row in reader:
            if not row:
                continue
            if header is None:
                header = row
                unknown = [c for c in header if c not in COLUMNS]
                if unknown:
                    logger.debug("Ignoring unknown columns: %s", unknown)
                continue
            if len(row) != len(header):
                raise ParseError(
                    f"line {reader.line_num}: expected {len(header)} fields, "
                    f"got {len(row)}"
                )
            try:
                record = record_from_row(header, row)
            except ParseError as exc:
                raise ParseError(f"line {reader.line_num}: {exc}") from exc
            yield record
    except csv.Error as exc:
        raise ParseError(f"line {reader.line_num}: {exc}") from exc

    if header is None:
        raise ParseError("empty log file: no header row")


def parse_text(text: str) -> list[FlowLogRecord]:
    """Parse decompressed flow log text into a list of records."""
    return list(iter_records(text.splitlines()))


def decode_log(raw: bytes) -> list[FlowLogRecord]:
    """Gunzip *raw* and parse it into the full, ordered list of records."""
    data = gunzip(raw)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"log file is not valid UTF-8: {exc}") from exc
    return parse_text(text)
