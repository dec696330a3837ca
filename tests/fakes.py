"""In-memory fakes of the document store used across the tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from bookmark_queue.domain.bookmark import Bookmark

TEST_TOKEN = "ghp_testtoken"
TEST_GIST_ID = "abc123"
QUEUE_FILE = "bookmark-queue.json"
RAW_HOST = "https://gist.githubusercontent.com"


class FakeGistServer:
    """Minimal stand-in for the gists endpoint of the GitHub API.

    ``fail_next`` queues canned failures per HTTP method: an int becomes an
    error response with that status, an exception class is raised as a
    transport error.
    """

    def __init__(
        self,
        gist_id: str = TEST_GIST_ID,
        files: dict[str, str] | None = None,
        token: str = TEST_TOKEN,
        truncate_over: int | None = None,
    ) -> None:
        self.gists: dict[str, dict[str, str]] = {gist_id: dict(files or {})}
        self.token = token
        self.truncate_over = truncate_over
        self.requests: list[httpx.Request] = []
        self.fail_next: dict[str, list[Any]] = {"GET": [], "PATCH": []}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def reads(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")

    @property
    def writes(self) -> int:
        return sum(1 for r in self.requests if r.method == "PATCH")

    def content(self, name: str = QUEUE_FILE, gist_id: str = TEST_GIST_ID) -> str | None:
        return self.gists[gist_id].get(name)

    def queue(self, name: str = QUEUE_FILE, gist_id: str = TEST_GIST_ID) -> list[dict[str, Any]]:
        return json.loads(self.content(name, gist_id) or "[]")

    def _gist_body(self, gist_id: str) -> dict[str, Any]:
        files: dict[str, Any] = {}
        for name, content in self.gists[gist_id].items():
            raw_url = f"{RAW_HOST}/raw/{gist_id}/{name}"
            entry: dict[str, Any] = {
                "filename": name,
                "content": content,
                "truncated": False,
                "raw_url": raw_url,
                "size": len(content),
            }
            if self.truncate_over is not None and len(content) > self.truncate_over:
                entry["content"] = content[: self.truncate_over]
                entry["truncated"] = True
            files[name] = entry
        return {
            "id": gist_id,
            "html_url": f"https://gist.github.com/{gist_id}",
            "updated_at": "2025-01-01T00:00:00Z",
            "files": files,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        pending = self.fail_next.get(request.method)
        if pending:
            failure = pending.pop(0)
            if isinstance(failure, int):
                return httpx.Response(failure, json={"message": f"Injected {failure}"})
            raise failure("injected failure", request=request)

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        if request.url.host == "gist.githubusercontent.com":
            _, _, gist_id, name = request.url.path.split("/", 3)
            return httpx.Response(200, text=self.gists[gist_id][name])

        parts = request.url.path.strip("/").split("/")
        if len(parts) != 2 or parts[0] != "gists" or parts[1] not in self.gists:
            return httpx.Response(404, json={"message": "Not Found"})
        gist_id = parts[1]

        if request.method == "GET":
            return httpx.Response(200, json=self._gist_body(gist_id))

        if request.method == "PATCH":
            body = json.loads(request.content)
            for name, entry in body["files"].items():
                self.gists[gist_id][name] = entry["content"]
            return httpx.Response(200, json=self._gist_body(gist_id))

        return httpx.Response(405, json={"message": "Method Not Allowed"})


class InMemoryStore:
    """DocumentStore backed by a dict, with hooks for forcing interleavings."""

    def __init__(self, blobs: dict[str, str] | None = None) -> None:
        self.blobs: dict[tuple[str, str], str] = {}
        for name, content in (blobs or {}).items():
            self.blobs[(TEST_GIST_ID, name)] = content
        self.reads = 0
        self.writes = 0
        self.write_log: list[str] = []
        self.readers_to_wait_for = 1
        self._all_read = asyncio.Event()

    async def read_blob(self, store_id: str, name: str) -> str | None:
        snapshot = self.blobs.get((store_id, name))
        self.reads += 1
        if self.reads >= self.readers_to_wait_for:
            self._all_read.set()
        await self._all_read.wait()
        return snapshot

    async def write_blob(self, store_id: str, name: str, content: str) -> None:
        await asyncio.sleep(0)
        self.writes += 1
        self.write_log.append(content)
        self.blobs[(store_id, name)] = content

    def queue(self, name: str = QUEUE_FILE) -> list[dict[str, Any]]:
        return json.loads(self.blobs.get((TEST_GIST_ID, name), "[]"))


def make_bookmark(url: str = "https://example.com/a", **kwargs: Any) -> Bookmark:
    kwargs.setdefault("title", "Example")
    kwargs.setdefault("timestamp", "2025-01-02T03:04:05.678Z")
    return Bookmark(url=url, **kwargs)


