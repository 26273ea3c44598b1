"""Pydantic-based configuration helpers for the Slack approval bot."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator


class AppSettings(BaseModel):
    """Settings validated once at startup and read-only afterwards."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: str = Field(..., alias="SLACK_SIGNING_SECRET")
    port: int = Field(3000, alias="PORT")
    command: str = Field("/approval-test", alias="APPROVAL_COMMAND")
    token_secret: str | None = Field(None, alias="APPROVAL_TOKEN_SECRET")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = {"frozen": True}

    @field_validator("bot_token", "signing_secret")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Value must not be blank")
        return value.strip()

    @field_validator("token_secret")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("PORT must be between 1 and 65535")
        return value

    @field_validator("command")
    @classmethod
    def _slash_prefixed(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("/") or len(value) < 2:
            raise ValueError("APPROVAL_COMMAND must look like '/command'")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        invalid = [str(error["loc"][0]) for error in exc.errors() if error["type"] != "missing"]
        parts = []
        if missing:
            parts.append(f"Missing required environment variables: {_format_missing(missing)}")
        if invalid:
            parts.append(f"Invalid environment variables: {_format_missing(invalid)}")
        raise RuntimeError("; ".join(parts)) from exc
