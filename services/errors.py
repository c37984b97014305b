"""Exception hierarchy for device access, payload parsing and sessions."""

from __future__ import annotations


class TransportError(Exception):
    """Base class for failures talking to the storeroom device."""


class DeviceStatusError(TransportError):
    """The device answered with a non-200 status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Connection failed, status code: {status_code}")


class DeviceConnectionError(TransportError):
    """The device could not be reached (refused, DNS, timeout)."""


class ParseError(ValueError):
    """Base class for payloads that do not yield a usable reading."""


class DeviceReportedError(ParseError):
    """The payload is a free-text message from the device, not a reading."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NonNumericReadingError(ParseError):
    """The temperature field is not a finite number."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Temperature field is not numeric: {value!r}")


class SessionCancelled(Exception):
    """The host cancelled the session at a suspension point."""
