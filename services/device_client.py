"""HTTP client for the storeroom sensor/fan controller."""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from models.records import DeviceCommand
from services.errors import DeviceConnectionError, DeviceStatusError
from settings import Settings, get_settings
from storage.config_store import ConfigStore, read_device_host

logger = logging.getLogger(__name__)

COMMAND_FIELD = "param1"


def device_url(host: str, port: int) -> str:
    # Rendered "0808", the way the firmware documents its port.
    return f"http://{host}:{port:04d}/"


class DeviceClient:
    """Posts one command token per call and returns the response body.

    Each call opens and closes its own ``httpx.AsyncClient`` so no connection
    outlives the call on any exit path, cancellation included.
    """

    def __init__(
        self,
        host: str,
        port: int = 808,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = device_url(host, port)
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        store: ConfigStore,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DeviceClient":
        """Read the device host once and build a client for one session."""
        settings = settings or get_settings()
        return cls(
            read_device_host(store),
            settings.device_port,
            timeout=settings.device_timeout,
            transport=transport,
        )

    async def fetch(self, command: DeviceCommand | str) -> str:
        token = command.value if isinstance(command, DeviceCommand) else command
        extra = {"command": token, "device_url": self.url}
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.url, data={COMMAND_FIELD: token})
        except httpx.TimeoutException as exc:
            logger.warning("Device request timed out", extra=extra)
            raise DeviceConnectionError(
                f"Timed out after {self._timeout:g}s waiting for {self.url}"
            ) from exc
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            logger.warning("Device unreachable: %s", exc, extra=extra)
            raise DeviceConnectionError(f"Cannot reach {self.url}: {exc}") from exc

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        if response.status_code != 200:
            logger.warning(
                "Device returned an error status",
                extra={**extra, "status_code": response.status_code, "elapsed_ms": elapsed_ms},
            )
            raise DeviceStatusError(response.status_code)

        logger.debug("Device responded", extra={**extra, "elapsed_ms": elapsed_ms})
        return response.text
