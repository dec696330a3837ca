"""Bookmark record model and the queue's JSON text form."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from bookmark_queue.core.errors import ConfigurationError, CorruptQueueError
from bookmark_queue.core.logging_utils import truncate_log_content

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def utc_timestamp(now: datetime | None = None) -> str:
    """Format an instant the way ``Date.prototype.toISOString`` does.

    >>> utc_timestamp(datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=UTC))
    '2025-01-02T03:04:05.678Z'
    """
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _clean_optional(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class Bookmark(BaseModel):
    """One captured page.

    Immutable once created. Fields other clients add to the shared queue are
    kept as extras so rewriting the queue does not drop them.
    """

    model_config = ConfigDict(frozen=True, extra="allow", str_strip_whitespace=True)

    url: str
    title: str
    selection: str | None = None
    note: str | None = None
    timestamp: str
    source: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fallback_title(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        title = data.get("title")
        if title is None or (isinstance(title, str) and not title.strip()):
            data = {**data, "title": data.get("url")}
        return data

    @field_validator("url", "title")
    @classmethod
    def _require_text(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            msg = f"{info.field_name} must not be empty"
            raise ValueError(msg)
        return value

    @field_validator("selection", "note", "source", mode="before")
    @classmethod
    def _normalize_optional(cls, value: Any) -> Any:
        return _clean_optional(value)

    @field_validator("timestamp")
    @classmethod
    def _validate_timestamp(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value)
        except ValueError as exc:
            msg = f"timestamp is not an ISO-8601 instant: {value!r}"
            raise ValueError(msg) from exc
        return value

    @classmethod
    def create(
        cls,
        *,
        url: str | None,
        title: str | None = None,
        selection: str | None = None,
        note: str | None = None,
        source: str | None = None,
        now: datetime | None = None,
    ) -> Bookmark:
        """Build a new record stamped with the current instant.

        Raises:
            ConfigurationError: if the fields do not make a valid record
        """
        try:
            return cls(
                url=url,
                title=title,
                selection=selection,
                note=note,
                timestamp=utc_timestamp(now),
                source=source,
            )
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid bookmark: {problems}") from exc

    @property
    def created_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict; absent optional fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)


def parse_queue(text: str | None) -> list[Bookmark]:
    """Parse the blob content into records.

    Blank or missing content is an empty queue. Anything else must be a JSON
    array of record objects.

    Raises:
        CorruptQueueError: if the content cannot be read as a queue
    """
    if text is None or not text.strip():
        return []

    preview = truncate_log_content(text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptQueueError(
            f"invalid JSON at line {exc.lineno} column {exc.colno}", content_preview=preview
        ) from exc
    except RecursionError as exc:
        raise CorruptQueueError("JSON nesting too deep", content_preview=preview) from exc
    except ValueError as exc:
        # e.g. integers past the int max_str_digits limit
        raise CorruptQueueError(f"unreadable JSON: {exc}", content_preview=preview) from exc

    if not isinstance(data, list):
        raise CorruptQueueError(
            f"expected a JSON array, got {type(data).__name__}", content_preview=preview
        )

    bookmarks: list[Bookmark] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise CorruptQueueError(
                f"element {index} is {type(item).__name__}, not an object",
                content_preview=preview,
            )
        try:
            bookmarks.append(Bookmark.model_validate(item))
        except ValidationError as exc:
            raise CorruptQueueError(
                f"element {index} is not a valid bookmark ({exc.error_count()} errors)",
                content_preview=preview,
            ) from exc

    logger.debug("queue_parsed", extra={"count": len(bookmarks)})
    return bookmarks


def serialize_queue(bookmarks: Iterable[Bookmark]) -> str:
    """Render the queue as pretty-printed JSON text."""
    return json.dumps([b.to_record() for b in bookmarks], indent=2, ensure_ascii=False)
