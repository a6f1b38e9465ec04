# uipom/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"
    webkit = "webkit"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for uipom.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Waiting ----
    DEFAULT_TIMEOUT_MS: int = Field(default=30000, ge=0, description="Default wait/expect timeout")
    POLLING_INTERVAL_MS: int = Field(default=500, ge=1, description="Default polling cadence")

    # ---- Descriptors ----
    DESCRIPTORS_DIR: Path = Field(default=Path("./pages"))
    DEFAULT_NAMESPACE: str = Field(default="pages")
    BASE_URL: Optional[str] = Field(default=None, description="Prefix for relative page urls")

    # Component names containing any of these (case-insensitive) get typed text masked
    SECRET_NAME_MARKERS: list[str] = Field(default_factory=lambda: ["password", "secret", "token"])

    # ---- Browser configuration ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    VIEWPORT_WIDTH: int = Field(default=1366, ge=320, le=7680)
    VIEWPORT_HEIGHT: int = Field(default=768, ge=320, le=4320)
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    USER_AGENT: Optional[str] = Field(default=None)
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./uipom.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("DESCRIPTORS_DIR", "LOG_FILE", mode="before")
    @classmethod
    def _as_absolute_path(cls, v):
        p = v if isinstance(v, Path) else Path(str(v))
        return p if p.is_absolute() else Path.cwd() / p

    @field_validator("SECRET_NAME_MARKERS", mode="after")
    @classmethod
    def _normalise_markers(cls, v: list[str]):
        return [m.strip().lower() for m in v if m and m.strip()]

    @field_validator("BASE_URL")
    @classmethod
    def _strip_base_url(cls, v: Optional[str]):
        return (v.strip().rstrip("/") or None) if v is not None else None

    def playwright_launch_kwargs(self) -> dict:
        """Keyword arguments for `browser_type.launch()`."""
        return dict(headless=self.HEADLESS, slow_mo=self.SLOW_MO)

    def playwright_context_kwargs(self) -> dict:
        """Keyword arguments for `browser.new_context()`."""
        kwargs: dict = dict(viewport=dict(width=self.VIEWPORT_WIDTH, height=self.VIEWPORT_HEIGHT))
        if self.USER_AGENT:
            kwargs["user_agent"] = self.USER_AGENT
        if self.BASE_URL:
            kwargs["base_url"] = self.BASE_URL
        return kwargs


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings. `get_settings.cache_clear()` reloads them."""
    return Settings()


class WaitPolicy(BaseModel):
    """Timeout and polling cadence used when a wait call passes none."""

    timeout_ms: int = Field(default=30000, ge=0)
    polling_interval_ms: int = Field(default=500, ge=1)
