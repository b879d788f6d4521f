"""
Error taxonomy for the sync pipeline.

Each error maps to one recovery policy in the sync run:
- FetchError: source skipped for this run, no store mutation
- ParseError: snapshot treated as empty (so nothing is deleted)
- ValidationError: the single document is dropped, siblings continue
- StoreError: remaining writes for the source are aborted, earlier
  writes are kept, the source is reported as a partial failure
"""


class SyncError(Exception):
    """Base exception for sync errors."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class FetchError(SyncError):
    """Network or HTTP failure while fetching a snapshot."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, source=source)
        self.status_code = status_code


class ParseError(SyncError):
    """Payload could not be decoded into a list of documents."""

    pass


class ValidationError(SyncError):
    """A single raw document is malformed (e.g. empty source or extid)."""

    pass


class StoreError(SyncError):
    """Persistence failure while reading or writing the documents table."""

    pass
