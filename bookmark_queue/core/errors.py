"""Error taxonomy for the bookmark queue.

Every failure of an append is one of four categories. Callers decide whether
to retry from the category alone; the message is meant to be shown verbatim.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Categories of errors for client handling."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    STORE_REJECTED = "store_rejected"
    CORRUPT_QUEUE = "corrupt_queue"


_RETRYABLE_CATEGORIES: set[ErrorCategory] = {ErrorCategory.TRANSPORT}

# Hints for the statuses GitHub actually returns from the gists endpoint
_STATUS_HINTS: dict[int, str] = {
    401: "bad credentials, check the token",
    403: "forbidden or rate limited",
    404: "store object not found, check the gist id and token scope",
    409: "conflicting update",
    422: "store rejected the payload",
}


class QueueSyncError(Exception):
    """Base exception for all bookmark queue errors."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.category in _RETRYABLE_CATEGORIES

    def display_message(self) -> str:
        return f"[{self.category.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dict suitable for logging or JSON output."""
        payload: dict[str, Any] = {
            "category": self.category.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(QueueSyncError):
    """Missing or invalid credentials, store id, or record fields.

    The input has to be fixed; retrying the same call cannot succeed.
    """

    category = ErrorCategory.CONFIGURATION


class TransportError(QueueSyncError):
    """The store could not be reached. Safe to retry."""

    category = ErrorCategory.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.cause = cause
        self.status_code = status_code


class StoreRejectedError(QueueSyncError):
    """The store answered with a non-success status."""

    category = ErrorCategory.STORE_REJECTED

    def __init__(
        self,
        operation: str,
        status_code: int,
        store_message: str | None = None,
    ) -> None:
        message = f"Failed to {operation}: {status_code}"
        if store_message:
            message = f"{message} {store_message}"
        hint = _STATUS_HINTS.get(status_code)
        if hint:
            message = f"{message} ({hint})"
        super().__init__(
            message,
            {"operation": operation, "status_code": status_code, "store_message": store_message},
        )
        self.operation = operation
        self.status_code = status_code
        self.store_message = store_message


class CorruptQueueError(QueueSyncError):
    """The remote blob is not a JSON array of bookmark records.

    Needs manual repair of the remote document; the queue is never
    overwritten with a guessed value.
    """

    category = ErrorCategory.CORRUPT_QUEUE

    def __init__(self, reason: str, *, content_preview: str | None = None) -> None:
        details: dict[str, Any] = {}
        if content_preview is not None:
            details["content_preview"] = content_preview
        super().__init__(f"Bookmark queue is corrupt: {reason}", details)
        self.reason = reason
        self.content_preview = content_preview
