"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from yahoo_history.data.session import DEFAULT_USER_AGENT
from yahoo_history.errors import ConfigError

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def parse_bool(value: str | None, default: bool) -> bool:
    """Parse truthy environment strings."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_positive_int(value: str | None, default: int, *, field_name: str) -> int:
    """Parse a positive integer from an env string, falling back to `default` when unset."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return parsed


def parse_symbols(value: str | None) -> list[str]:
    """Parse comma-separated symbols, keeping their spelling."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    timeout: int = 20
    max_workers: int = 8
    ignore_empty_rows: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    cookie_url: str = "https://fc.yahoo.com"
    crumb_url: str = "https://query2.finance.yahoo.com/v1/test/getcrumb"
    download_url: str = "https://query1.finance.yahoo.com/v7/finance/download"
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        defaults = cls()
        raw = cls(
            timeout=parse_positive_int(
                os.getenv("YAHOO_TIMEOUT"), defaults.timeout, field_name="timeout"
            ),
            max_workers=parse_positive_int(
                os.getenv("YAHOO_MAX_WORKERS"), defaults.max_workers, field_name="max_workers"
            ),
            ignore_empty_rows=parse_bool(
                os.getenv("YAHOO_IGNORE_EMPTY_ROWS"), defaults.ignore_empty_rows
            ),
            user_agent=str(os.getenv("YAHOO_USER_AGENT", defaults.user_agent)).strip(),
            cookie_url=str(os.getenv("YAHOO_COOKIE_URL", defaults.cookie_url)).strip(),
            crumb_url=str(os.getenv("YAHOO_CRUMB_URL", defaults.crumb_url)).strip(),
            download_url=str(os.getenv("YAHOO_DOWNLOAD_URL", defaults.download_url)).strip(),
            log_level=str(os.getenv("LOG_LEVEL", defaults.log_level)).strip().upper(),
            log_file=(os.getenv("LOG_FILE") or "").strip() or None,
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        overrides = dict(kwargs)
        log_level = overrides.get("log_level")
        if isinstance(log_level, str):
            overrides["log_level"] = log_level.strip().upper()
        updated = replace(self, **overrides)
        return updated.validate()

    def validate(self) -> Self:
        """Validate settings fields."""
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.max_workers <= 0:
            raise ConfigError("max_workers must be positive")
        if not self.user_agent:
            raise ConfigError("user_agent must not be empty")
        for name in ("cookie_url", "crumb_url", "download_url"):
            value = getattr(self, name)
            if not value.startswith(("http://", "https://")):
                raise ConfigError(f"{name} must be an http(s) URL, got {value!r}")
        if self.log_level not in LOG_LEVELS:
            supported = ", ".join(sorted(LOG_LEVELS))
            raise ConfigError(f"log_level must be one of {supported}")
        return self
