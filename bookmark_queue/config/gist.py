from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_GIST_ID = "d37553e2f87fd4d73381ac88c147da1c"
DEFAULT_GIST_FILENAME = "bookmark-queue.json"
DEFAULT_API_URL = "https://api.github.com"


class GistConfig(BaseModel):
    """Document store settings: where the shared queue lives and how to reach it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str = Field(
        default="",
        validation_alias=AliasChoices("GITHUB_TOKEN", "BOOKMARK_QUEUE_TOKEN"),
        description="Bearer token with gist scope",
        repr=False,
    )
    gist_id: str = Field(default=DEFAULT_GIST_ID, validation_alias="GIST_ID")
    filename: str = Field(default=DEFAULT_GIST_FILENAME, validation_alias="GIST_FILENAME")
    api_url: str = Field(default=DEFAULT_API_URL, validation_alias="GITHUB_API_URL")
    request_timeout_sec: float = Field(default=30.0, validation_alias="GIST_REQUEST_TIMEOUT_SEC")
    user_agent: str = Field(default="bookmark-queue", validation_alias="GIST_USER_AGENT")

    @field_validator("token", mode="before")
    @classmethod
    def _validate_token(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        token = str(value).strip()
        if len(token) > 500:
            msg = "GitHub token appears to be too long"
            raise ValueError(msg)
        if any(ch.isspace() for ch in token):
            msg = "GitHub token cannot contain whitespace"
            raise ValueError(msg)
        return token

    @field_validator("gist_id", mode="before")
    @classmethod
    def _validate_gist_id(cls, value: Any) -> str:
        gist_id = str(value or "").strip()
        if not gist_id:
            return DEFAULT_GIST_ID
        if "/" in gist_id or any(ch.isspace() for ch in gist_id):
            msg = "Gist ID must be a bare identifier, not a URL or path"
            raise ValueError(msg)
        return gist_id

    @field_validator("filename", mode="before")
    @classmethod
    def _validate_filename(cls, value: Any) -> str:
        filename = str(value or "").strip()
        if not filename:
            return DEFAULT_GIST_FILENAME
        if "/" in filename:
            msg = "Gist filename cannot contain '/'"
            raise ValueError(msg)
        return filename

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_API_URL).strip()
        if not url:
            return DEFAULT_API_URL
        if not url.startswith(("http://", "https://")):
            msg = "GitHub API URL must start with http:// or https://"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("request_timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        try:
            timeout = float(str(value if value not in (None, "") else 30.0))
        except ValueError as exc:
            msg = "Gist request timeout must be a number"
            raise ValueError(msg) from exc
        if timeout <= 0:
            msg = "Gist request timeout must be positive"
            raise ValueError(msg)
        if timeout > 600:
            msg = "Gist request timeout too large (max 600 seconds)"
            raise ValueError(msg)
        return timeout

    @property
    def has_token(self) -> bool:
        return bool(self.token)
