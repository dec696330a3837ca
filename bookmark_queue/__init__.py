"""Shared bookmark queue kept as a JSON array in a GitHub gist."""

from bookmark_queue.core.errors import (
    ConfigurationError,
    CorruptQueueError,
    ErrorCategory,
    QueueSyncError,
    StoreRejectedError,
    TransportError,
)
from bookmark_queue.domain.bookmark import Bookmark, parse_queue, serialize_queue
from bookmark_queue.sync.queue_sync import (
    AppendResult,
    QueueSync,
    append_bookmark,
    append_with_retry,
)

__version__ = "0.1.0"

__all__ = [
    "AppendResult",
    "Bookmark",
    "ConfigurationError",
    "CorruptQueueError",
    "ErrorCategory",
    "QueueSync",
    "QueueSyncError",
    "StoreRejectedError",
    "TransportError",
    "append_bookmark",
    "append_with_retry",
    "parse_queue",
    "serialize_queue",
]
