"""Development server configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_FILE, override=False)


class MockServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MOCK_SERVER_", env_file=str(ENV_FILE), extra="ignore")

    host: str = "127.0.0.1"
    port: int = 7010

    api_version: str = "v1"
    demo_username: str = "demo"
    demo_password: str = "demo-password"

    min_username_length: int = 3
    min_password_length: int = 8


@lru_cache(maxsize=1)
def get_settings() -> MockServerSettings:
    return MockServerSettings()
