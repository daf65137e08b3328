"""Application settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{value}'") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{value}'") from exc


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return Path(value.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    forecast_log_capacity: int
    forecast_log_database_path: Optional[Path]
    throughput_min_ratio: float
    yield_min_ratio: float
    bottleneck_threshold: int
    low_throughput_threshold: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests derive variants via `replace`."""
    return Settings(
        app_name=_env_str("FORECAST_APP_NAME", "Facility Forecasting Service"),
        app_version=_env_str("FORECAST_APP_VERSION", "1.0.0"),
        log_level=_env_str("FORECAST_LOG_LEVEL", "INFO"),
        forecast_log_capacity=_env_int("FORECAST_LOG_CAPACITY", 500),
        forecast_log_database_path=_env_path("FORECAST_LOG_DB_PATH"),
        throughput_min_ratio=_env_float("FORECAST_THROUGHPUT_MIN_RATIO", 0.7),
        yield_min_ratio=_env_float("FORECAST_YIELD_MIN_RATIO", 0.85),
        bottleneck_threshold=_env_int("FORECAST_BOTTLENECK_THRESHOLD", 2),
        low_throughput_threshold=_env_int("FORECAST_LOW_THROUGHPUT_THRESHOLD", 2),
    )
