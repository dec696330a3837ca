"""GitHub Gist API client."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from bookmark_queue.adapters.gist.models import Gist, GistFileContent, UpdateGistRequest
from bookmark_queue.config.gist import DEFAULT_API_URL
from bookmark_queue.core.errors import StoreRejectedError, TransportError

if TYPE_CHECKING:
    from typing import Self

    from bookmark_queue.config.gist import GistConfig

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


def _store_message(response: httpx.Response) -> str | None:
    """Extract the ``message`` GitHub puts in error bodies, if any."""
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or response.reason_phrase or None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return response.reason_phrase or None


class GistClient:
    """Async HTTP client for the gists endpoint.

    Every call is a single request. Failures are raised as ``TransportError``
    or ``StoreRejectedError``; retrying is left to the caller.
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        user_agent: str = "bookmark-queue",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Gist client.

        Args:
            token: Bearer token with gist scope
            api_url: Base URL of the GitHub REST API
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value (GitHub rejects requests without one)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls, config: GistConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> GistClient:
        return cls(
            config.token,
            api_url=config.api_url,
            timeout=config.request_timeout_sec,
            user_agent=config.user_agent,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": GITHUB_ACCEPT,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": self.user_agent,
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    async def _request(
        self, method: str, url: str, *, operation: str, **kwargs: Any
    ) -> httpx.Response:
        started = time.perf_counter()
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning(
                "gist_request_timeout",
                extra={"operation": operation, "method": method, "error": str(exc)},
            )
            msg = f"Timed out trying to {operation}"
            raise TransportError(msg, cause=exc) from exc
        except httpx.TransportError as exc:
            logger.warning(
                "gist_request_transport_error",
                extra={"operation": operation, "method": method, "error": str(exc)},
            )
            msg = f"Could not reach the store to {operation}: {exc}"
            raise TransportError(msg, cause=exc) from exc

        latency_ms = round((time.perf_counter() - started) * 1000, 1)
        if not response.is_success:
            store_message = _store_message(response)
            logger.warning(
                "gist_request_rejected",
                extra={
                    "operation": operation,
                    "status_code": response.status_code,
                    "store_message": store_message,
                    "latency_ms": latency_ms,
                },
            )
            raise StoreRejectedError(operation, response.status_code, store_message)

        logger.debug(
            "gist_request_ok",
            extra={
                "operation": operation,
                "status_code": response.status_code,
                "latency_ms": latency_ms,
            },
        )
        return response

    @staticmethod
    def _parse_gist(response: httpx.Response, operation: str, *, strict: bool = True) -> Gist:
        """Parse a gist body.

        With ``strict=False`` (after a write the store already accepted) an
        unreadable body is logged and an empty ``Gist`` returned, so a landed
        write is never reported as failed.
        """
        try:
            data = response.json()
        except ValueError as exc:
            if not strict:
                logger.warning("gist_unexpected_body", extra={"operation": operation})
                return Gist()
            raise StoreRejectedError(
                operation, response.status_code, "response body is not JSON"
            ) from exc
        if not isinstance(data, dict):
            if not strict:
                logger.warning("gist_unexpected_body", extra={"operation": operation})
                return Gist()
            raise StoreRejectedError(
                operation, response.status_code, "response body is not a gist object"
            )
        # A body with only a message and no files is an error even on a 2xx
        if "files" not in data and isinstance(data.get("message"), str):
            raise StoreRejectedError(operation, response.status_code, data["message"])
        try:
            return Gist.model_validate(data)
        except ValidationError as exc:
            if not strict:
                logger.warning("gist_unexpected_body", extra={"operation": operation})
                return Gist()
            raise StoreRejectedError(
                operation, response.status_code, "response body is not a gist object"
            ) from exc

    async def get_gist(self, gist_id: str) -> Gist:
        """Fetch the full gist object.

        Args:
            gist_id: Gist identifier

        Returns:
            Gist with its files
        """
        operation = "fetch Gist"
        response = await self._request("GET", f"/gists/{gist_id}", operation=operation)
        return self._parse_gist(response, operation)

    async def read_file(self, gist_id: str, filename: str) -> str | None:
        """Read one file's full content.

        The API inlines at most about a megabyte of content per file and flags
        the rest as truncated; the full text is then fetched from ``raw_url``.

        Args:
            gist_id: Gist identifier
            filename: Name of the file inside the gist

        Returns:
            File content, or None if the gist has no such file
        """
        gist = await self.get_gist(gist_id)
        gist_file = gist.files.get(filename)
        if gist_file is None:
            logger.info("gist_file_absent", extra={"gist_id": gist_id, "gist_file": filename})
            return None

        if gist_file.truncated and gist_file.raw_url:
            logger.info(
                "gist_file_truncated_fetching_raw",
                extra={"gist_id": gist_id, "gist_file": filename, "size": gist_file.size},
            )
            response = await self._request(
                "GET", gist_file.raw_url, operation="fetch Gist raw content"
            )
            return response.text

        return gist_file.content

    async def write_file(self, gist_id: str, filename: str, content: str) -> Gist:
        """Overwrite one file's full content.

        Args:
            gist_id: Gist identifier
            filename: Name of the file inside the gist
            content: New full content

        Returns:
            Updated gist as echoed by the API
        """
        operation = "update Gist"
        request = UpdateGistRequest(files={filename: GistFileContent(content=content)})
        response = await self._request(
            "PATCH",
            f"/gists/{gist_id}",
            operation=operation,
            json=request.model_dump(),
        )
        logger.info(
            "gist_file_written",
            extra={"gist_id": gist_id, "gist_file": filename, "content_length": len(content)},
        )
        return self._parse_gist(response, operation, strict=False)

    async def read_blob(self, store_id: str, name: str) -> str | None:
        return await self.read_file(store_id, name)

    async def write_blob(self, store_id: str, name: str, content: str) -> None:
        await self.write_file(store_id, name, content)
