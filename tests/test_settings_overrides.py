from __future__ import annotations

from typing import Iterable, Iterator

import pytest

from settings import get_settings
from storage.config_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_caches() -> Iterator[None]:
    caches = (get_settings, build_default_store)
    _clear_caches(caches)
    yield
    _clear_caches(caches)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "voice.json"

    monkeypatch.setenv("VOICE_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("DEVICE_PORT", "8080")
    monkeypatch.setenv("DEVICE_TIMEOUT", "3.5")
    monkeypatch.setenv("PROGRESS_INTERVAL", "2")
    monkeypatch.setenv("TEMPERATURE_THRESHOLD", "30")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    store = build_default_store()

    assert settings.device_port == 8080
    assert settings.device_timeout == 3.5
    assert settings.progress_interval == 2.0
    assert settings.temperature_threshold == 30.0
    assert settings.log_level == "DEBUG"
    assert store.persistence_path == config_path


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("DEVICE_PORT", "99999")
    monkeypatch.setenv("DEVICE_TIMEOUT", "-1")
    monkeypatch.setenv("PROGRESS_INTERVAL", "soon")
    monkeypatch.setenv("TEMPERATURE_THRESHOLD", "nan")
    monkeypatch.setenv("LOG_LEVEL", "  ")

    settings = get_settings()

    assert settings.device_port == 808
    assert settings.device_timeout == 10.0
    assert settings.progress_interval == 5.0
    assert settings.temperature_threshold == 28.0
    assert settings.log_level == "INFO"


def test_blank_config_path_keeps_settings_in_memory(monkeypatch) -> None:
    monkeypatch.setenv("VOICE_CONFIG_PATH", " ")

    store = build_default_store()

    assert store.persistence_path is None
