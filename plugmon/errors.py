"""
Error taxonomy for the plug store.

Every error is scoped to the single queued operation that raised it; the
request queue delivers it to that operation's caller and keeps draining.
Nothing here is retried automatically.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""


class PlugStoreError(Exception):
    """Base class for all plug store failures."""


class QueueFullError(PlugStoreError):
    """Admission rejected: the request queue is at capacity.

    Raised immediately by ``RequestQueue.submit``. The caller must retry
    later or drop the work.
    """

    def __init__(self, max_size: int) -> None:
        super().__init__(f"Reached maximum queue size of {max_size}")
        self.max_size = max_size


class StorageError(PlugStoreError):
    """Store-level failure for one statement."""


class StoreConnectionError(StorageError, ConnectionError):
    """The persistent store could not be opened."""


class StoreStatementError(StorageError):
    """A statement failed to execute (constraint, syntax, I/O)."""


class ConsistencyViolationError(PlugStoreError):
    """More than one average row matched a single bucket key."""

    def __init__(
        self,
        plug_id: int,
        bucket_start_ms: int,
        duration_ms: int,
        matches: int,
    ) -> None:
        super().__init__(
            f"Found {matches} average rows for plug_id={plug_id}, "
            f"bucket_start_ms={bucket_start_ms}, duration_ms={duration_ms}; "
            "expected at most one"
        )
        self.plug_id = plug_id
        self.bucket_start_ms = bucket_start_ms
        self.duration_ms = duration_ms
        self.matches = matches
