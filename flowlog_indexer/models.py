"""Flow log record, keyed by the column names in the log's header row."""

from dataclasses import dataclass, field, fields

from flowlog_indexer.errors import ParseError


def _column(name: str, default=""):
    return field(default=default, metadata={"column": name})


@dataclass(frozen=True)
class FlowLogRecord:
    version: int = _column("version", 0)
    account_id: str = _column("account-id")
    interface_id: str = _column("interface-id")
    srcaddr: str = _column("srcaddr")
    dstaddr: str = _column("dstaddr")
    srcport: str = _column("srcport")
    dstport: str = _column("dstport")
    protocol: str = _column("protocol")
    packets: str = _column("packets")
    bytes: str = _column("bytes")
    start: str = _column("start")
    end: str = _column("end")
    action: str = _column("action")
    log_status: str = _column("log-status")
    instance_id: str = _column("instance-id")
    pkt_srcaddr: str = _column("pkt-srcaddr")
    pkt_dstaddr: str = _column("pkt-dstaddr")
    subnet_id: str = _column("subnet-id")
    type: str = _column("type")
    vpc_id: str = _column("vpc-id")

    def to_document(self) -> dict:
        """Index document body, keyed by the flow log column names."""
        return {
            f.metadata["column"]: getattr(self, f.name) for f in fields(self)
        }


# column name -> (attribute name, type)
COLUMNS = {
    f.metadata["column"]: (f.name, f.type) for f in fields(FlowLogRecord)
}


def record_from_row(header: list[str], row: list[str]) -> FlowLogRecord:
    """Build a record from one data row, using *header* to place each cell.

    Unknown columns are ignored. ``version`` is the only typed column: an
    empty cell becomes 0, anything else that is not an integer raises
    ParseError.
    """
    values = {}
    for column, cell in zip(header, row):
        known = COLUMNS.get(column)
        if known is None:
            continue
        attr, kind = known
        if kind in (int, "int"):
            try:
                values[attr] = int(cell) if cell else 0
            except ValueError:
                raise ParseError(
                    f"column {column!r}: {cell!r} is not an integer"
                ) from None
        else:
            values[attr] = cell
    return FlowLogRecord(**values)
