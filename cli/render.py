from __future__ import annotations

from typing import Iterable, Optional

import typer

from app.schemas import ConfirmationPrompt, ContentTile, VoiceResponse


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_tiles(tiles: Iterable[ContentTile]) -> None:
    for tile in tiles:
        typer.echo(f"  [{tile.title}] {tile.text}")


def render_response(response: VoiceResponse, *, fg: Optional[str] = None) -> None:
    typer.secho(response.message.display, fg=fg)
    if response.message.spoken != response.message.display:
        typer.echo(f"(spoken) {response.message.spoken}")
    echo_tiles(response.tiles)


class ConsoleTransport:
    """Plays a voice session out on the terminal.

    ``auto_confirm`` answers the fan prompt without asking, for scripted runs.
    """

    def __init__(self, auto_confirm: Optional[bool] = None) -> None:
        self._auto_confirm = auto_confirm

    async def report_progress(self, response: VoiceResponse) -> None:
        typer.secho(f"... {response.message.display}", dim=True)

    async def report_success(self, response: VoiceResponse) -> None:
        typer.echo()
        render_response(response, fg=typer.colors.GREEN)

    async def report_failure(self, response: VoiceResponse) -> None:
        typer.echo()
        render_response(response, fg=typer.colors.RED)

    async def request_confirmation(self, prompt: ConfirmationPrompt) -> Optional[bool]:
        echo_heading(prompt.prompt.display)
        if self._auto_confirm is not None:
            typer.echo("yes" if self._auto_confirm else "no")
            return self._auto_confirm
        return typer.confirm(prompt.reprompt.display, default=False)

    async def request_app_launch(self, response: VoiceResponse) -> None:
        render_response(response)
