from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from models.records import DeviceCommand
from services.device_client import DeviceClient
from services.errors import DeviceConnectionError, DeviceStatusError, TransportError
from settings import Settings
from storage.config_store import DEVICE_HOST_KEY, JsonConfigStore


def _settings(**overrides) -> Settings:
    values = dict(
        config_path=None,
        device_port=808,
        device_timeout=2.0,
        progress_interval=5.0,
        temperature_threshold=28.0,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def _client(handler, host: str = "10.0.0.5") -> DeviceClient:
    return DeviceClient(host, 808, timeout=2.0, transport=httpx.MockTransport(handler))


def test_fetch_posts_form_encoded_command() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="25.0;77.0;40")

    body = asyncio.run(_client(handler).fetch(DeviceCommand.READ_SENSORS))

    assert body == "25.0;77.0;40"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.host == "10.0.0.5"
    assert request.url.port == 808
    assert request.url.path == "/"
    assert request.headers["content-type"].startswith("application/x-www-form-urlencoded")
    assert request.content == b"param1=hello"


def test_fetch_accepts_raw_token() -> None:
    seen: List[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.content)
        return httpx.Response(200, text="ok")

    asyncio.run(_client(handler).fetch("fanopen"))

    assert seen == [b"param1=fanopen"]


def test_url_uses_documented_port_spelling() -> None:
    assert DeviceClient("192.168.1.100").url == "http://192.168.1.100:0808/"


def test_non_200_raises_status_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="busy")

    with pytest.raises(DeviceStatusError) as excinfo:
        asyncio.run(_client(handler).fetch(DeviceCommand.READ_SENSORS))

    assert excinfo.value.status_code == 503
    assert "503" in str(excinfo.value)
    assert isinstance(excinfo.value, TransportError)


def test_connection_failure_raises_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeviceConnectionError) as excinfo:
        asyncio.run(_client(handler).fetch(DeviceCommand.READ_SENSORS))

    assert "connection refused" in str(excinfo.value)


def test_timeout_raises_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(DeviceConnectionError) as excinfo:
        asyncio.run(_client(handler).fetch(DeviceCommand.OPEN_FAN))

    assert "Timed out" in str(excinfo.value)


def test_from_config_reads_host_from_store() -> None:
    store = JsonConfigStore()
    store.set(DEVICE_HOST_KEY, "10.1.2.3")

    client = DeviceClient.from_config(store, _settings(device_port=9000))

    assert client.url == "http://10.1.2.3:9000/"


def test_from_config_defaults_host() -> None:
    client = DeviceClient.from_config(JsonConfigStore(), _settings())

    assert client.url == "http://192.168.1.100:0808/"
