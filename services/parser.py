"""Parsing of the semicolon-delimited payload returned by the device."""

from __future__ import annotations

import math

from models.records import SensorReading
from services.errors import DeviceReportedError, NonNumericReadingError

DELIMITER = ";"
MAX_FIELDS = 3


def parse_reading(raw: str) -> SensorReading:
    """Turn ``"<tempC>;<tempF>;<humidity>"`` into a :class:`SensorReading`.

    A payload without a delimiter is a message written by the device itself
    (for example when its sensor is unplugged) and is raised verbatim as
    :class:`DeviceReportedError`. Only the first field has to be numeric;
    the other two are kept as display text. Fields past the third are ignored.
    """
    parts = raw.split(DELIMITER)
    if len(parts) == 1:
        raise DeviceReportedError(raw)

    fields = tuple(part.strip() for part in parts[:MAX_FIELDS])
    try:
        temperature = float(fields[0])
    except ValueError as exc:
        raise NonNumericReadingError(fields[0]) from exc
    if not math.isfinite(temperature):
        raise NonNumericReadingError(fields[0])

    return SensorReading(temperature_c=temperature, fields=fields)
