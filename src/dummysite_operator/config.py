"""Operator configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .constants import DEFAULT_INGRESS_DOMAIN, FETCH_TIMEOUT_SECONDS


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float) -> float:
    return float(_env(key, str(default)))


def _validate_log_level(value: str) -> str:
    valid = {"DEBUG", "INFO", "WARNING", "ERROR"}
    if value.upper() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.upper()


@dataclass(frozen=True)
class OperatorConfig:
    resync_period_seconds: int = 600
    watch_timeout_seconds: int = 300
    cache_sync_timeout_seconds: int = 60
    workers: int = 1
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    health_port: int = 8080
    ingress_domain: str = DEFAULT_INGRESS_DOMAIN
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Load configuration from environment variables."""
        return cls(
            resync_period_seconds=_env_int("RESYNC_PERIOD_SECONDS", 600, min_val=0),
            watch_timeout_seconds=_env_int("WATCH_TIMEOUT_SECONDS", 300, min_val=1),
            cache_sync_timeout_seconds=_env_int("CACHE_SYNC_TIMEOUT_SECONDS", 60, min_val=1),
            workers=_env_int("WORKERS", 1, min_val=1, max_val=32),
            fetch_timeout_seconds=_env_float("FETCH_TIMEOUT_SECONDS", FETCH_TIMEOUT_SECONDS),
            health_port=_env_int("HEALTH_PORT", 8080, min_val=1024, max_val=65535),
            ingress_domain=_env("INGRESS_DOMAIN", DEFAULT_INGRESS_DOMAIN),
            log_level=_validate_log_level(_env("LOG_LEVEL", "INFO")),
        )
