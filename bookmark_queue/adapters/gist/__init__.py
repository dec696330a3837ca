"""GitHub Gist adapter backing the shared bookmark queue."""

from bookmark_queue.adapters.gist.client import GistClient
from bookmark_queue.adapters.gist.protocols import DocumentStore

__all__ = ["DocumentStore", "GistClient"]
