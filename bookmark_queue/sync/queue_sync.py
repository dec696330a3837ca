"""Synchronized append to the shared bookmark queue.

Appending is a read-modify-write of the whole blob: one read, a local append,
one full overwrite. The store has no conditional write, so two clients that
both read before either writes lose the first writer's record (last write
wins). That hazard is accepted and not papered over here. A retry must
re-run the full cycle so it observes the latest remote state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bookmark_queue.adapters.gist.client import GistClient
from bookmark_queue.config.gist import DEFAULT_GIST_FILENAME, GistConfig
from bookmark_queue.core.errors import ConfigurationError, CorruptQueueError
from bookmark_queue.core.logging_utils import generate_correlation_id
from bookmark_queue.domain.bookmark import Bookmark, parse_queue, serialize_queue
from bookmark_queue.sync.retry import DEFAULT_MAX_ATTEMPTS, run_with_retry

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from bookmark_queue.adapters.gist.protocols import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppendResult:
    bookmark: Bookmark
    queue_length: int
    correlation_id: str
    duration_seconds: float


def check_credentials(credentials: str | None, store_id: str | None) -> None:
    """Fail fast on missing credentials or store id, before any network call."""
    if not credentials or not credentials.strip():
        raise ConfigurationError("GitHub token is not configured")
    if not store_id or not store_id.strip():
        raise ConfigurationError("Gist ID is not configured")


def check_record(record: Bookmark) -> None:
    if not isinstance(record, Bookmark):
        msg = f"Expected a Bookmark, got {type(record).__name__}"
        raise ConfigurationError(msg)
    # model_construct() skips validation, so the required fields are re-checked
    if not getattr(record, "url", None):
        raise ConfigurationError("Bookmark url must not be empty")
    if not getattr(record, "title", None):
        raise ConfigurationError("Bookmark title must not be empty")


class QueueSync:
    """Read-modify-write of the bookmark queue blob in a document store."""

    def __init__(self, store: DocumentStore, blob_name: str = DEFAULT_GIST_FILENAME) -> None:
        self.store = store
        self.blob_name = blob_name

    async def fetch_list(self, store_id: str) -> list[Bookmark]:
        """Read and parse the current queue.

        An absent or empty blob is an empty queue.

        Raises:
            CorruptQueueError: if the blob is not a JSON array of records
            TransportError: if the store cannot be reached
            StoreRejectedError: if the store refuses the read
        """
        content = await self.store.read_blob(store_id, self.blob_name)
        try:
            bookmarks = parse_queue(content)
        except CorruptQueueError as exc:
            logger.error(
                "queue_corrupt",
                extra={"store_id": store_id, "blob": self.blob_name, "reason": exc.reason},
            )
            raise
        logger.debug(
            "queue_fetched",
            extra={"store_id": store_id, "blob": self.blob_name, "count": len(bookmarks)},
        )
        return bookmarks

    async def write_list(self, store_id: str, bookmarks: Sequence[Bookmark]) -> None:
        """Overwrite the blob with the full queue."""
        await self.store.write_blob(store_id, self.blob_name, serialize_queue(bookmarks))
        logger.debug(
            "queue_written",
            extra={"store_id": store_id, "blob": self.blob_name, "count": len(bookmarks)},
        )

    async def append_bookmark(
        self,
        store_id: str,
        record: Bookmark,
        *,
        correlation_id: str | None = None,
    ) -> AppendResult:
        """Append one record: fetch, append locally, write back.

        Succeeds only once the store accepted the write. Any failure aborts
        with nothing written; a corrupt queue is never overwritten.
        """
        if not store_id or not store_id.strip():
            raise ConfigurationError("Gist ID is not configured")
        check_record(record)

        cid = correlation_id or generate_correlation_id()
        started = time.perf_counter()
        log_extra = {"correlation_id": cid, "store_id": store_id, "url": record.url}
        logger.info("queue_append_started", extra=log_extra)

        bookmarks = await self.fetch_list(store_id)
        bookmarks.append(record)
        try:
            await self.write_list(store_id, bookmarks)
        except Exception as exc:
            logger.warning("queue_write_failed", extra={**log_extra, "error": str(exc)})
            raise

        duration = time.perf_counter() - started
        logger.info(
            "queue_append_completed",
            extra={
                **log_extra,
                "queue_length": len(bookmarks),
                "duration_seconds": round(duration, 3),
            },
        )
        return AppendResult(
            bookmark=record,
            queue_length=len(bookmarks),
            correlation_id=cid,
            duration_seconds=duration,
        )


def _client_config(credentials: str, store_id: str, config: GistConfig | None) -> GistConfig:
    base = config or GistConfig()
    return base.model_copy(update={"token": credentials.strip(), "gist_id": store_id.strip()})


async def append_bookmark(
    credentials: str,
    store_id: str,
    record: Bookmark,
    *,
    config: GistConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    correlation_id: str | None = None,
) -> AppendResult:
    """Append ``record`` to the queue in gist ``store_id``.

    Args:
        credentials: Bearer token for the gist API
        store_id: Gist identifier
        record: Fully populated bookmark
        config: Other store settings (API URL, filename, timeout); token and
            gist id are taken from the arguments
        transport: Optional httpx transport
        correlation_id: Optional id tying the log lines of this append together

    Raises:
        ConfigurationError: on missing credentials, store id, or record fields
        TransportError: if the store cannot be reached
        StoreRejectedError: if the store refuses the read or the write
        CorruptQueueError: if the existing queue cannot be parsed
    """
    check_credentials(credentials, store_id)
    check_record(record)
    gist_config = _client_config(credentials, store_id, config)

    async with GistClient.from_config(gist_config, transport=transport) as client:
        return await QueueSync(client, gist_config.filename).append_bookmark(
            gist_config.gist_id, record, correlation_id=correlation_id
        )


async def append_with_retry(
    credentials: str,
    store_id: str,
    record: Bookmark,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    config: GistConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **retry_kwargs: Any,
) -> AppendResult:
    """Like ``append_bookmark`` but re-runs the whole cycle on transport errors.

    A transport failure after the store applied the write (e.g. a timeout on
    the response) can still lead to the record being appended twice.
    """
    cid = generate_correlation_id()

    async def _attempt() -> AppendResult:
        return await append_bookmark(
            credentials,
            store_id,
            record,
            config=config,
            transport=transport,
            correlation_id=cid,
        )

    return await run_with_retry(_attempt, max_attempts=max_attempts, **retry_kwargs)
