"""Runtime settings, read from ``SAFECALC_*`` environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SAFECALC_", env_file=".env", case_sensitive=False
    )

    # Observability
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    # API
    title: str = "SafeCalc API"
    version: str = "1.0.0"

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
