"""Exceptions raised by the ingestion and trend pipeline."""


class OmieWatchError(Exception):
    """Base class for pipeline errors."""


class FetchError(OmieWatchError):
    """Upstream file could not be retrieved (non-200 status or transport failure)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseSkip(OmieWatchError):
    """A single row could not be normalized and is dropped from the batch."""


class PersistError(OmieWatchError):
    """Writing a record to the store failed."""


class QueryError(OmieWatchError):
    """Reading price history from the store failed."""


class InsufficientDataError(QueryError):
    """Not enough history for the trend window under the strict policy."""
