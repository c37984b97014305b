from __future__ import annotations

import asyncio
from typing import Dict, List, Union

import pytest
from typer.testing import CliRunner

from cli.app import app
from models.records import DeviceCommand
from services.errors import DeviceConnectionError
from storage.config_store import DEVICE_HOST_KEY, JsonConfigStore


class StubDevice:
    def __init__(self, responses: Dict[str, Union[str, Exception]]) -> None:
        self.responses = responses
        self.calls: List[str] = []

    async def fetch(self, command) -> str:
        token = command.value if isinstance(command, DeviceCommand) else command
        self.calls.append(token)
        await asyncio.sleep(0)
        result = self.responses[token]
        if isinstance(result, Exception):
            raise result
        return result


class StubDeviceClient:
    """Stands in for ``DeviceClient`` and remembers which host it was built for."""

    device = StubDevice({})
    hosts: List[str] = []

    @classmethod
    def from_config(cls, store, settings=None):
        cls.hosts.append(store.get(DEVICE_HOST_KEY) or "default")
        return cls.device


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def store(tmp_path) -> JsonConfigStore:
    return JsonConfigStore(persistence_path=tmp_path / "voice.json")


def _install_stub(monkeypatch, store: JsonConfigStore, responses) -> StubDevice:
    device = StubDevice(responses)
    StubDeviceClient.device = device
    StubDeviceClient.hosts = []
    monkeypatch.setattr("cli.app.DeviceClient", StubDeviceClient)
    monkeypatch.setattr("cli.app.build_default_store", lambda: store)
    return device


def test_ask_reports_reading(monkeypatch, runner: CliRunner, store) -> None:
    device = _install_stub(monkeypatch, store, {"hello": "25.0;77.0;40"})

    result = runner.invoke(app, ["ask", "--condition", "temperature"])

    assert result.exit_code == 0
    assert "Loading the storeroom's current temperature" in result.output
    assert "Storeroom status is normal" in result.output
    assert "25.0℃" in result.output
    assert device.calls == ["hello"]


def test_ask_with_yes_opens_fan(monkeypatch, runner: CliRunner, store) -> None:
    device = _install_stub(monkeypatch, store, {"hello": "30.0;86.0;55", "fanopen": "ok"})

    result = runner.invoke(app, ["ask", "--yes"])

    assert result.exit_code == 0
    assert "fan is open" in result.output
    assert device.calls == ["hello", "fanopen"]


def test_ask_prompts_interactively(monkeypatch, runner: CliRunner, store) -> None:
    device = _install_stub(monkeypatch, store, {"hello": "30.0;86.0;55", "fanopen": "ok"})

    result = runner.invoke(app, ["ask"], input="n\n")

    assert result.exit_code == 0
    assert "Open the fan?" in result.output
    assert "leaving it as is" in result.output
    assert device.calls == ["hello"]


def test_ask_exits_non_zero_on_failure(monkeypatch, runner: CliRunner, store) -> None:
    _install_stub(monkeypatch, store, {"hello": DeviceConnectionError("Cannot reach device")})

    result = runner.invoke(app, ["ask"])

    assert result.exit_code == 1
    assert "Cannot reach device" in result.output


def test_ask_uses_configured_host(monkeypatch, runner: CliRunner, store) -> None:
    store.set(DEVICE_HOST_KEY, "10.0.0.8")
    _install_stub(monkeypatch, store, {"hello": "20;68;30"})

    runner.invoke(app, ["ask"])

    assert StubDeviceClient.hosts == ["10.0.0.8"]


def test_host_set_and_show(monkeypatch, runner: CliRunner, store) -> None:
    _install_stub(monkeypatch, store, {})

    show_default = runner.invoke(app, ["host", "show"])
    set_result = runner.invoke(app, ["host", "set", "10.0.0.9"])
    show_updated = runner.invoke(app, ["host", "show"])

    assert show_default.output.strip() == "192.168.1.100"
    assert set_result.exit_code == 0
    assert show_updated.output.strip() == "10.0.0.9"
    assert store.get(DEVICE_HOST_KEY) == "10.0.0.9"


def test_host_set_rejects_url(monkeypatch, runner: CliRunner, store) -> None:
    _install_stub(monkeypatch, store, {})

    result = runner.invoke(app, ["host", "set", "http://10.0.0.9/"])

    assert result.exit_code == 2
    assert store.get(DEVICE_HOST_KEY) is None
