"""Pydantic models for the GitHub Gist API."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime

from pydantic import BaseModel, Field


class GistFile(BaseModel):
    """One file of a gist as returned by ``GET /gists/{id}``."""

    filename: str | None = None
    content: str | None = None
    truncated: bool = False
    raw_url: str | None = None
    size: int | None = None

    model_config = {"extra": "ignore"}


class Gist(BaseModel):
    """Gist object. Only the fields the queue needs are kept."""

    id: str | None = None
    files: dict[str, GistFile | None] = Field(default_factory=dict)
    html_url: str | None = None
    updated_at: datetime | None = None
    truncated: bool = False

    model_config = {"extra": "ignore"}


class GistFileContent(BaseModel):
    content: str


class UpdateGistRequest(BaseModel):
    """Body of ``PATCH /gists/{id}``; replaces the full content of each named file."""

    files: dict[str, GistFileContent]
