"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from bookmark_queue.adapters.gist.client import GistClient
from bookmark_queue.config.gist import GistConfig
from tests.fakes import TEST_GIST_ID, TEST_TOKEN, FakeGistServer


@pytest.fixture
def gist_server() -> FakeGistServer:
    return FakeGistServer()


@pytest.fixture
def gist_config() -> GistConfig:
    return GistConfig(token=TEST_TOKEN, gist_id=TEST_GIST_ID)


@pytest.fixture
def store_factory(gist_server: FakeGistServer):
    """Store factory wiring ``GistClient`` to the fake server."""

    def _factory(config: GistConfig) -> GistClient:
        return GistClient.from_config(config, transport=gist_server.transport)

    return _factory


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GITHUB_TOKEN",
        "BOOKMARK_QUEUE_TOKEN",
        "GIST_ID",
        "GIST_FILENAME",
        "GITHUB_API_URL",
        "GIST_REQUEST_TIMEOUT_SEC",
        "GIST_USER_AGENT",
        "LOG_LEVEL",
        "LOG_FILE",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
