"""Document store port.

The queue sync only needs whole-blob read and overwrite, so any store that
offers those two calls can hold the queue.
"""

from __future__ import annotations

from typing import Protocol


class DocumentStore(Protocol):
    async def read_blob(self, store_id: str, name: str) -> str | None:
        """Return the blob's full text, or None when the store object has no such blob."""
        ...

    async def write_blob(self, store_id: str, name: str, content: str) -> None:
        """Overwrite the blob's full text."""
        ...
