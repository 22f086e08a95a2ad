"""
Configuration settings for the session catalog.

Uses Pydantic Settings to load environment variables for the fetch pipeline,
the headless browser, the offline snapshot and query behaviour. Values can be
placed in a local `.env` file as well.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from session_catalog.agenda import DEFAULT_SESSION_IDS, SESSION_URL_TEMPLATE


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Agenda source
    session_url_template: str = Field(SESSION_URL_TEMPLATE, alias="SESSION_URL_TEMPLATE")
    session_ids: List[str] = Field(default_factory=lambda: list(DEFAULT_SESSION_IDS), alias="SESSION_IDS")
    ready_selector: str = Field(".session-title", alias="READY_SELECTOR")

    # Fetch pipeline
    fetch_timeout_seconds: float = Field(30.0, alias="FETCH_TIMEOUT_SECONDS", gt=0)
    fetch_max_attempts: int = Field(3, alias="FETCH_MAX_ATTEMPTS", ge=1)
    fetch_backoff_seconds: float = Field(1.0, alias="FETCH_BACKOFF_SECONDS", ge=0)
    fetch_workers: Optional[int] = Field(None, alias="FETCH_WORKERS", ge=1)

    # Browser
    browser_headless: bool = Field(True, alias="BROWSER_HEADLESS")
    browser_block_resources: bool = Field(True, alias="BROWSER_BLOCK_RESOURCES")

    # Offline snapshot
    offline: bool = Field(False, alias="OFFLINE")
    data_file: str = Field("sessions_backup.json", alias="DATA_FILE")

    # Queries
    query_mode: Literal["blocking", "non_blocking"] = Field("blocking", alias="QUERY_MODE")
    query_wait_timeout_seconds: Optional[float] = Field(None, alias="QUERY_WAIT_TIMEOUT_SECONDS", gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
