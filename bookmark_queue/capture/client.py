"""Capture client: turns user input into a record and appends it.

The browser extension and the phone automation script are the same client
with different profiles. They differ only in whether the selection is
captured and whether records carry a ``source`` tag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bookmark_queue.adapters.gist.client import GistClient
from bookmark_queue.core.errors import ConfigurationError, QueueSyncError
from bookmark_queue.core.logging_utils import generate_correlation_id
from bookmark_queue.domain.bookmark import Bookmark
from bookmark_queue.sync.queue_sync import AppendResult, QueueSync, check_credentials
from bookmark_queue.sync.retry import run_with_retry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from contextlib import AbstractAsyncContextManager
    from datetime import datetime

    from bookmark_queue.adapters.gist.protocols import DocumentStore
    from bookmark_queue.config.gist import GistConfig

    StoreFactory = Callable[[GistConfig], AbstractAsyncContextManager[DocumentStore]]

logger = logging.getLogger(__name__)

NO_URL_MESSAGE = "No URL found. Share a webpage to save it."


@dataclass(frozen=True)
class ClientProfile:
    name: str
    source: str | None
    captures_selection: bool


BROWSER_EXTENSION = ClientProfile(name="browser-extension", source=None, captures_selection=True)
AUTOMATION_SCRIPT = ClientProfile(
    name="automation-script", source="ios-shortcut", captures_selection=False
)


@dataclass
class CaptureDraft:
    """What the user is about to save. Mutable: the note is cleared after a save."""

    url: str
    title: str | None = None
    selection: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class CaptureOutcome:
    ok: bool
    bookmark: Bookmark | None = None
    queue_length: int | None = None
    category: str | None = None
    message: str | None = None
    retryable: bool = False
    correlation_id: str | None = None

    @classmethod
    def success(cls, result: AppendResult) -> CaptureOutcome:
        return cls(
            ok=True,
            bookmark=result.bookmark,
            queue_length=result.queue_length,
            correlation_id=result.correlation_id,
        )

    @classmethod
    def failure(cls, error: QueueSyncError, correlation_id: str | None = None) -> CaptureOutcome:
        return cls(
            ok=False,
            category=error.category.value,
            message=error.message,
            retryable=error.retryable,
            correlation_id=correlation_id,
        )

    def display_text(self) -> str:
        if self.ok:
            return "✓ Saved!"
        return f"Error: [{self.category}] {self.message}"


def resolve_shared_url(
    urls: Sequence[str] | None = None, plain_texts: Sequence[str] | None = None
) -> str:
    """Pick the URL out of share-sheet input.

    The first shared URL wins; otherwise shared text is accepted when it looks
    like a web address.

    Raises:
        ConfigurationError: if nothing usable was shared
    """
    for url in urls or ():
        if url and url.strip():
            return url.strip()
    if plain_texts:
        text = plain_texts[0].strip()
        if text.startswith("http"):
            return text
    raise ConfigurationError(NO_URL_MESSAGE)


def gist_store_factory(config: GistConfig) -> AbstractAsyncContextManager[DocumentStore]:
    return GistClient.from_config(config)


class CaptureClient:
    """Builds records from drafts and appends them to the shared queue.

    Errors are never raised to the caller; they come back in the outcome with
    their category and message so a UI can show them as they are.
    """

    def __init__(
        self,
        config: GistConfig,
        profile: ClientProfile = BROWSER_EXTENSION,
        *,
        store_factory: StoreFactory | None = None,
        max_attempts: int = 1,
        retry_base_delay: float = 1.0,
    ) -> None:
        self.config = config
        self.profile = profile
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self._store_factory = store_factory or gist_store_factory

    def build_record(self, draft: CaptureDraft, *, now: datetime | None = None) -> Bookmark:
        """Stamp a record from the draft at the moment the user commits the save."""
        selection = draft.selection if self.profile.captures_selection else None
        return Bookmark.create(
            url=draft.url,
            title=draft.title,
            selection=selection,
            note=draft.note,
            source=self.profile.source,
            now=now,
        )

    async def _append_once(self, record: Bookmark, correlation_id: str) -> AppendResult:
        check_credentials(self.config.token, self.config.gist_id)
        async with self._store_factory(self.config) as store:
            sync = QueueSync(store, self.config.filename)
            return await sync.append_bookmark(
                self.config.gist_id, record, correlation_id=correlation_id
            )

    async def save(self, draft: CaptureDraft) -> CaptureOutcome:
        cid = generate_correlation_id()
        try:
            record = self.build_record(draft)
            result = await run_with_retry(
                lambda: self._append_once(record, cid),
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                operation_name=f"{self.profile.name}.save",
            )
        except QueueSyncError as exc:
            logger.warning(
                "capture_save_failed",
                extra={
                    "correlation_id": cid,
                    "client": self.profile.name,
                    "category": exc.category.value,
                    "error": exc.message,
                    "retryable": exc.retryable,
                },
            )
            return CaptureOutcome.failure(exc, cid)

        draft.note = None
        logger.info(
            "capture_saved",
            extra={
                "correlation_id": cid,
                "client": self.profile.name,
                "queue_length": result.queue_length,
            },
        )
        return CaptureOutcome.success(result)
