"""Decides whether a reading warrants offering to open the fan."""

from __future__ import annotations

from enum import Enum

from models.records import SensorReading

DEFAULT_THRESHOLD_C = 28.0


class Decision(str, Enum):
    normal = "normal"
    needs_confirmation = "needs_confirmation"


def decide(reading: SensorReading, threshold: float = DEFAULT_THRESHOLD_C) -> Decision:
    if reading.temperature_c >= threshold:
        return Decision.needs_confirmation
    return Decision.normal
