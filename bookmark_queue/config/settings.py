from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from bookmark_queue.core.errors import ConfigurationError

from .gist import GistConfig

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Any) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        if not trimmed:
            return None
        if "\x00" in trimmed:
            msg = "Log file path contains invalid characters"
            raise ValueError(msg)
        return trimmed


def _env_names(field: FieldInfo) -> list[str]:
    """Variable names a field answers to, in priority order."""
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        names = [choice for choice in alias.choices if isinstance(choice, str)]
    else:
        names = [alias] if isinstance(alias, str) else []
    if field.alias:
        names.append(field.alias)
    return names


def _first_present(source: dict[str, Any], names: list[str]) -> Any | None:
    for name in names:
        if name in source:
            return source[name]
    return None


@dataclass(frozen=True)
class AppConfig:
    gist: GistConfig
    runtime: RuntimeConfig


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Nested models are populated by matching validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        case_sensitive=True,
    )

    gist: GistConfig = Field(default_factory=GistConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_env(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Fill ``gist`` and ``runtime`` from flat variables such as ``GIST_ID``.

        Keyword arguments given to ``Settings(...)`` shadow the process
        environment; values already passed as a nested dict shadow both.
        """
        if not isinstance(data, dict):
            return data

        lookup: dict[str, Any] = {**os.environ, **data}
        result = dict(data)
        for section, model in (("gist", GistConfig), ("runtime", RuntimeConfig)):
            explicit = result.get(section)
            if isinstance(explicit, BaseModel):
                continue
            found = {
                name: value
                for name, field in model.model_fields.items()
                if (value := _first_present(lookup, _env_names(field))) is not None
            }
            if not found:
                continue
            result[section] = {**found, **explicit} if isinstance(explicit, dict) else found
        return result

    def as_app_config(self) -> AppConfig:
        return AppConfig(gist=self.gist, runtime=self.runtime)


def load_config(**overrides: Any) -> AppConfig:
    """Load configuration from the environment.

    Keyword overrides (e.g. ``GITHUB_TOKEN="..."`` or ``gist={...}``) take
    precedence over environment variables.

    A missing token is not an error here; the append operation reports it.

    Raises:
        ConfigurationError: If a configured value is invalid.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise ConfigurationError(msg) from exc

    if not settings.gist.has_token:
        logger.warning("github_token_missing", extra={"gist_id": settings.gist.gist_id})

    return settings.as_app_config()
