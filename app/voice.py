"""WebSocket host for voice sessions.

Protocol:

1. Client connects to ``/voice``.
2. Client sends ``{"type": "command", "name": "Temperature",
   "properties": {"condition": ["temperature"]}}``.
3. Server streams ``progress`` frames, then either one ``success`` /
   ``failure`` frame, or a ``prompt`` frame answered by the client with
   ``{"type": "confirmation", "confirmed": true}`` before the final frame.
   Unknown commands get a single ``launch_app`` frame.
4. Server closes the socket. Disconnecting early cancels the session.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel

from app.api import get_store
from app.schemas import CommandMessage, ConfirmationMessage, ConfirmationPrompt, VoiceResponse
from models.records import VoiceCommand
from services.device_client import DeviceClient
from services.session import CancellationToken, Fetcher, VoiceCommandService
from settings import get_settings
from storage.config_store import JsonConfigStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_device_factory(
    store: JsonConfigStore = Depends(get_store),
) -> Callable[[], Fetcher]:
    settings = get_settings()
    return lambda: DeviceClient.from_config(store, settings)


class WebSocketTransport:
    """Relays session turns to a connected voice front-end.

    A confirmation frame only counts as an answer while a prompt is pending;
    frames sent at any other time are dropped.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._answer: Optional["asyncio.Future[bool]"] = None

    async def report_progress(self, response: VoiceResponse) -> None:
        await self._send("progress", response)

    async def report_success(self, response: VoiceResponse) -> None:
        await self._send("success", response)

    async def report_failure(self, response: VoiceResponse) -> None:
        await self._send("failure", response)

    async def request_confirmation(self, prompt: ConfirmationPrompt) -> Optional[bool]:
        self._answer = asyncio.get_running_loop().create_future()
        try:
            await self._send("prompt", prompt)
            return await self._answer
        finally:
            self._answer = None

    async def request_app_launch(self, response: VoiceResponse) -> None:
        await self._send("launch_app", response)

    def deliver_answer(self, confirmed: bool) -> bool:
        """Resolve the pending prompt; returns ``False`` when none is pending."""
        if self._answer is None or self._answer.done():
            return False
        self._answer.set_result(confirmed)
        return True

    async def _send(self, kind: str, payload: BaseModel) -> None:
        frame: dict[str, Any] = {"type": kind, **payload.model_dump(mode="json")}
        await self._websocket.send_json(frame)


async def _pump_replies(
    websocket: WebSocket,
    transport: WebSocketTransport,
    token: CancellationToken,
) -> None:
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = ConfirmationMessage.model_validate_json(raw)
            except ValueError:
                logger.warning("Ignoring unexpected frame from voice client")
                continue
            if not transport.deliver_answer(message.confirmed):
                logger.warning("Ignoring confirmation sent while no prompt was pending")
    except WebSocketDisconnect:
        logger.info("Voice client disconnected")
        token.cancel()
    except Exception:
        # Nobody is left to answer a pending prompt.
        token.cancel()
        raise


def _log_reader_failure(reader: "asyncio.Task[None]") -> None:
    if reader.cancelled():
        return
    exc = reader.exception()
    if exc is not None:
        logger.error("Voice client reader failed", exc_info=exc)


@router.websocket("/voice")
async def voice_session(
    websocket: WebSocket,
    device_factory: Callable[[], Fetcher] = Depends(get_device_factory),
) -> None:
    await websocket.accept()
    try:
        command = CommandMessage.model_validate(await websocket.receive_json())
    except WebSocketDisconnect:
        return
    except ValueError as exc:
        await websocket.send_json({"type": "error", "error": str(exc)})
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    settings = get_settings()
    token = CancellationToken()
    transport = WebSocketTransport(websocket)
    reader = asyncio.create_task(_pump_replies(websocket, transport, token))
    service = VoiceCommandService(
        transport,
        device_factory,
        threshold=settings.temperature_threshold,
        progress_interval=settings.progress_interval,
    )
    try:
        await service.handle(
            VoiceCommand(name=command.name, properties=command.properties), token
        )
    finally:
        reader.cancel()
        await asyncio.wait({reader})
        _log_reader_failure(reader)

    if not token.cancelled:
        await websocket.close()
