"""Exceptions raised by the TzKT clients."""
from typing import Optional


class TzktError(Exception):
    """Base class for TzKT client errors."""


class IndexerAPIError(TzktError):
    """The indexer answered with a non-2xx status."""

    def __init__(self, status: int, reason: Optional[str], endpoint: str):
        self.status = status
        self.reason = reason or ""
        self.endpoint = endpoint
        super().__init__(f"TzKT API error: {status} {self.reason}".rstrip())


class IndexerUnavailableError(TzktError):
    """The indexer could not be reached."""

    def __init__(self, endpoint: str, cause: Exception):
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"TzKT API unreachable for {endpoint}: {cause}")


class IndexerResponseError(TzktError):
    """The indexer answered 2xx with a body that is not valid JSON."""

    def __init__(self, endpoint: str, cause: Exception):
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"TzKT API returned an invalid body for {endpoint}: {cause}")


class EnrichmentError(TzktError):
    """The yield enrichment source failed or returned unusable data."""
