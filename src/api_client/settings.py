"""API client configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_FILE, override=False)


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="API_CLIENT_", env_file=str(ENV_FILE), extra="ignore", populate_by_name=True
    )

    base_url: str = "http://localhost:7010"
    request_timeout_s: float = 10.0

    auth_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("API_TOKEN", "API_CLIENT_AUTH_TOKEN"),
    )
    default_headers: dict[str, str] = Field(default_factory=lambda: {"accept": "application/json"})

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    return ClientSettings()
