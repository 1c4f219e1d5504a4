"""
Environment-based configuration for the catalog extraction pipeline.

This module exposes a small, typed configuration surface shared by the
extractor and its CLI entry points. All values are sourced from environment
variables with sensible, non-secret defaults.

No secrets or credentials are hard-coded here; they must be provided via
the environment (or tooling such as python-dotenv in local development).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]

DEFAULT_TARGET_URL = "https://www.amazon.com/gp/bestsellers/electronics/"


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Cross-cutting concerns (logging, database) come first, followed by the
    cache windows, retry policy and browser settings used by the extractor.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    # When True, logs go to stdout. When False, only file (if LOG_FILE set). Default True.
    log_stdout: bool

    # Database URI only; credentials come from the environment.
    database_url: Optional[str]

    # Cache windows (hours) and retention (days)
    cache_max_age_hours: int
    stale_cache_max_age_hours: int  # 3x-7x of cache_max_age_hours
    detail_stale_cache_max_age_hours: int
    retention_days: int

    # Retry policy for live extraction
    retry_max_attempts: int
    retry_base_delay_ms: int

    # Browser
    browser_visible: bool
    skip_browser: bool
    browser_executable_path: Optional[str]
    browser_launch_timeout_ms: int
    browser_fallback_launch_timeout_ms: int
    nav_timeout_ms: int
    element_wait_timeout_ms: int

    # Tier-2 HTTP fetch
    http_fetch_timeout_seconds: int

    default_target_url: str
    max_records_per_request: int

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        All fields have sensible defaults suitable for local development.
        Production deployments are expected to override these via env vars.
        """

        environment = os.getenv("APP_ENV", "local")

        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        log_stdout_raw = (os.getenv("LOG_STDOUT") or "true").strip().lower()
        log_stdout = log_stdout_raw in ("true", "1", "yes")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _int_env(name: str, default: int) -> int:
            raw = (os.getenv(name) or "").strip()
            try:
                return int(raw) if raw else default
            except ValueError:
                return default

        cache_max_age_hours = max(1, _int_env("CACHE_MAX_AGE_HOURS", 24))

        def _stale_cache_max_age_hours() -> int:
            hours = _int_env("STALE_CACHE_MAX_AGE_HOURS", cache_max_age_hours * 3)
            return max(cache_max_age_hours * 3, min(cache_max_age_hours * 7, hours))

        # A visible browser only makes sense on a developer machine.
        visible_by_default = environment == "local"

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=log_stdout,
            database_url=os.getenv("DATABASE_URL"),
            cache_max_age_hours=cache_max_age_hours,
            stale_cache_max_age_hours=_stale_cache_max_age_hours(),
            detail_stale_cache_max_age_hours=_int_env("DETAIL_STALE_CACHE_MAX_AGE_HOURS", 168),
            retention_days=max(1, _int_env("RETENTION_DAYS", 7)),
            retry_max_attempts=max(1, _int_env("RETRY_MAX_ATTEMPTS", 3)),
            retry_base_delay_ms=max(0, _int_env("RETRY_BASE_DELAY_MS", 2000)),
            browser_visible=_bool_env("BROWSER_VISIBLE", visible_by_default),
            skip_browser=_bool_env("SKIP_BROWSER", False),
            browser_executable_path=os.getenv("BROWSER_EXECUTABLE_PATH") or None,
            browser_launch_timeout_ms=_int_env("BROWSER_LAUNCH_TIMEOUT_MS", 30000),
            browser_fallback_launch_timeout_ms=_int_env(
                "BROWSER_FALLBACK_LAUNCH_TIMEOUT_MS", 20000
            ),
            nav_timeout_ms=_int_env("NAV_TIMEOUT_MS", 45000),
            element_wait_timeout_ms=_int_env("ELEMENT_WAIT_TIMEOUT_MS", 15000),
            http_fetch_timeout_seconds=_int_env("HTTP_FETCH_TIMEOUT_SECONDS", 10),
            default_target_url=os.getenv("DEFAULT_TARGET_URL") or DEFAULT_TARGET_URL,
            max_records_per_request=max(1, _int_env("MAX_RECORDS_PER_REQUEST", 50)),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    In simple scripts, calling this function directly is sufficient. In
    longer-lived processes, consider constructing a single `AppConfig`
    instance at startup and passing it explicitly through your code.
    """

    return AppConfig.from_env()
