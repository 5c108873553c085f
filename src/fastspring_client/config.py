"""Configuration for the FastSpring client."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FASTSPRING_", case_sensitive=False)

    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    api_key: Optional[str] = Field(default=None)

    server_url: Optional[str] = Field(default=None)
    timeout_ms: int = Field(default=30000)
    verify_ssl: bool = Field(default=True)
    user_agent: str = Field(default="fastspring-client/1.0 (python-httpx)")

    openapi_path: Optional[str] = Field(default=None)
    log_level: str = Field(default="INFO")

    def credentials(self) -> tuple[str, ...]:
        if self.username:
            return (self.username, self.password or "")
        if self.api_key:
            return (self.api_key,)
        return ()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
