from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import typer

from app.schemas import OutcomeKind
from cli.render import ConsoleTransport
from logging_config import configure_logging
from models.records import VoiceCommand
from services.device_client import DeviceClient
from services.session import TEMPERATURE_COMMAND, VoiceCommandService
from settings import Settings, get_settings
from storage.config_store import (
    DEVICE_HOST_KEY,
    JsonConfigStore,
    build_default_store,
    normalize_host,
    read_device_host,
)


@dataclass
class CLIState:
    settings: Settings
    store: JsonConfigStore


app = typer.Typer(
    help="Ask the storeroom device for its current condition, like the voice assistant does.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
host_app = typer.Typer(help="Show or change the storeroom device address.")
app.add_typer(host_app, name="host")


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.find_object(CLIState)
    if state is None:
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log session transitions."),
) -> None:
    """Entry point for the CLI."""
    if verbose:
        configure_logging("DEBUG", force=True)
    ctx.obj = CLIState(settings=get_settings(), store=build_default_store())


@app.command("ask")
def ask_command(
    ctx: typer.Context,
    condition: str = typer.Option(
        "condition",
        "--condition",
        "-c",
        help="What was asked about, echoed in the loading message.",
    ),
    answer: Optional[bool] = typer.Option(
        None,
        "--yes/--no",
        help="Answer the open-the-fan prompt without asking.",
    ),
) -> None:
    """Run one voice session against the configured device."""
    state = _get_state(ctx)
    service = VoiceCommandService(
        ConsoleTransport(auto_confirm=answer),
        lambda: DeviceClient.from_config(state.store, state.settings),
        threshold=state.settings.temperature_threshold,
        progress_interval=state.settings.progress_interval,
    )
    command = VoiceCommand(name=TEMPERATURE_COMMAND, properties={"condition": [condition]})
    outcome = asyncio.run(service.handle(command))
    if outcome is None or outcome.kind is OutcomeKind.failed:
        raise typer.Exit(code=1)


@host_app.command("show")
def host_show_command(ctx: typer.Context) -> None:
    """Print the device host address."""
    state = _get_state(ctx)
    typer.echo(read_device_host(state.store))


@host_app.command("set")
def host_set_command(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="IP address or hostname of the device."),
) -> None:
    """Persist a new device host address."""
    state = _get_state(ctx)
    try:
        candidate = normalize_host(host)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="HOST") from exc
    state.store.set(DEVICE_HOST_KEY, candidate)
    typer.secho(f"Device host set to {candidate}", fg=typer.colors.GREEN)
