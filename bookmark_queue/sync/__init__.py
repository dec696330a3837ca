"""Append protocol for the shared bookmark queue."""

from bookmark_queue.sync.queue_sync import (
    AppendResult,
    QueueSync,
    append_bookmark,
    append_with_retry,
)

__all__ = ["AppendResult", "QueueSync", "append_bookmark", "append_with_retry"]
