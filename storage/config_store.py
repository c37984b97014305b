from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

from settings import get_settings

logger = logging.getLogger(__name__)

DEVICE_HOST_KEY = "device_host"
DEFAULT_DEVICE_HOST = "192.168.1.100"


class ConfigStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class JsonConfigStore:
    """String key/value settings, optionally persisted to a JSON file."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._values: Dict[str, str] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value
            self._persist()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        self.persistence_path.write_text(json.dumps(self._values, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable settings file %s", self.persistence_path
            )
            data = {}

        if not isinstance(data, dict):
            data = {}
        self._values = {str(key): str(value) for key, value in data.items()}


def read_device_host(store: ConfigStore) -> str:
    """Return the configured device host, falling back to the factory default."""
    value = store.get(DEVICE_HOST_KEY)
    if value is None or not value.strip():
        return DEFAULT_DEVICE_HOST
    return value.strip()


@lru_cache
def build_default_store(path: Optional[str] = None) -> JsonConfigStore:
    settings = get_settings()
    store_path = settings.config_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return JsonConfigStore(persistence_path=persistence)


def normalize_host(value: str) -> str:
    """Strip a device address and reject values that cannot go into a URL authority."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Device host must not be empty.")
    if any(char.isspace() for char in candidate) or "/" in candidate or ":" in candidate:
        raise ValueError("Device host must be a bare address without scheme, port or path.")
    return candidate
