"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class DeviceCommand(str, Enum):
    """Tokens understood by the storeroom device, sent as ``param1``."""

    READ_SENSORS = "hello"
    OPEN_FAN = "fanopen"


def _as_float(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single reading parsed from the device payload.

    ``fields`` keeps the display text of up to three fields in wire order:
    Celsius, the secondary metric (Fahrenheit) and relative humidity.
    """

    temperature_c: float
    fields: tuple[str, ...]

    @property
    def temperature_f(self) -> Optional[float]:
        return _as_float(self._field(1))

    @property
    def humidity_pct(self) -> Optional[float]:
        return _as_float(self._field(2))

    def _field(self, index: int) -> Optional[str]:
        if index < len(self.fields):
            return self.fields[index]
        return None


@dataclass
class VoiceCommand:
    """A recognised voice command as delivered by the assistant host."""

    name: str
    properties: Dict[str, List[str]] = field(default_factory=dict)

    def first(self, key: str, default: str = "") -> str:
        values = self.properties.get(key) or []
        return values[0] if values else default
