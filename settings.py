from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_CONFIG_PATH_ENV = "VOICE_CONFIG_PATH"
_DEVICE_PORT_ENV = "DEVICE_PORT"
_DEVICE_TIMEOUT_ENV = "DEVICE_TIMEOUT"
_PROGRESS_INTERVAL_ENV = "PROGRESS_INTERVAL"
_THRESHOLD_ENV = "TEMPERATURE_THRESHOLD"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    config_path: Optional[str]
    device_port: int
    device_timeout: float
    progress_interval: float
    temperature_threshold: float
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_port(default: int) -> int:
    value = os.getenv(_DEVICE_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 and math.isfinite(parsed) else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        config_path=_read_optional_env(_CONFIG_PATH_ENV, "./tmp/voice_config.json"),
        device_port=_read_port(808),
        device_timeout=_read_positive_float(_DEVICE_TIMEOUT_ENV, 10.0),
        progress_interval=_read_positive_float(_PROGRESS_INTERVAL_ENV, 5.0),
        temperature_threshold=_read_positive_float(_THRESHOLD_ENV, 28.0),
        log_level=_read_log_level("INFO"),
    )
