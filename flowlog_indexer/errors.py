"""Exception taxonomy for the ingestion pipeline.

ConfigurationError aborts a whole invocation. Every other error is scoped
to a single S3 object: the pipeline logs it and moves on.
"""


class IngestError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(IngestError):
    def __init__(self, missing=(), invalid=()):
        self.missing = list(missing)
        self.invalid = list(invalid)
        problems = []
        if self.missing:
            problems.append("missing required configuration: " + ", ".join(self.missing))
        if self.invalid:
            problems.append("invalid configuration: " + ", ".join(self.invalid))
        super().__init__("; ".join(problems))


class RetrievalError(IngestError):
    pass


class DecompressionError(IngestError):
    pass


class ParseError(IngestError):
    pass


class IndexProvisionError(IngestError):
    pass


class BulkIndexError(IngestError):
    pass


class FlushError(IngestError):
    pass
