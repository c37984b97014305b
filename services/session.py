"""Voice-command session orchestration.

A session is one short conversation with the assistant host: announce that
the storeroom is being checked, fetch and parse the device reading, reply
with the reading or, above the threshold, ask whether to open the fan and
act on the answer. Every session reports exactly one final response.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol
from uuid import uuid4

from app.schemas import ConfirmationPrompt, OutcomeKind, SessionOutcome, VoiceResponse
from models.records import DeviceCommand, VoiceCommand
from services import formatter
from services.errors import DeviceReportedError, ParseError, SessionCancelled, TransportError
from services.parser import parse_reading
from services.policy import DEFAULT_THRESHOLD_C, Decision, decide

logger = logging.getLogger(__name__)

TEMPERATURE_COMMAND = "Temperature"
DEFAULT_PROGRESS_INTERVAL = 5.0
_GENERIC_FAILURE = "Sorry, something went wrong while checking the storeroom."
_NO_ANSWER = "No answer was received, so the fan was left alone."


class SessionState(str, Enum):
    started = "started"
    awaiting_reading = "awaiting_reading"
    normal = "normal"
    threshold_breach = "threshold_breach"
    awaiting_confirmation = "awaiting_confirmation"
    actuating = "actuating"
    terminated = "terminated"


class SessionTransport(Protocol):
    """The assistant host's side of a session."""

    async def report_progress(self, response: VoiceResponse) -> None: ...

    async def report_success(self, response: VoiceResponse) -> None: ...

    async def report_failure(self, response: VoiceResponse) -> None: ...

    async def request_confirmation(self, prompt: ConfirmationPrompt) -> Optional[bool]: ...

    async def request_app_launch(self, response: VoiceResponse) -> None: ...


class Fetcher(Protocol):
    async def fetch(self, command: DeviceCommand | str) -> str: ...


class CancellationToken:
    """Set by the host when it abandons the session (deadline, lost focus)."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class CompletionSignal:
    """Single-fire notification that the host may release the session.

    Completing twice is a no-op.
    """

    def __init__(self, callback: Optional[Callable[[], None]] = None) -> None:
        self._callback = callback
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    def complete(self) -> None:
        if self._completed:
            return
        self._completed = True
        if self._callback is not None:
            self._callback()


class TemperatureSession:
    """Drives one "check the storeroom" conversation."""

    def __init__(
        self,
        transport: SessionTransport,
        device_factory: Callable[[], Fetcher],
        *,
        condition: str = "condition",
        threshold: float = DEFAULT_THRESHOLD_C,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        token: Optional[CancellationToken] = None,
        completion: Optional[CompletionSignal] = None,
    ) -> None:
        self.session_id = uuid4().hex[:12]
        self.state = SessionState.started
        self.outcome: Optional[SessionOutcome] = None
        self._transport = transport
        self._device_factory = device_factory
        self._condition = condition
        self._threshold = threshold
        self._progress_interval = progress_interval
        self._token = token or CancellationToken()
        self._completion = completion or CompletionSignal()

    async def run(self) -> Optional[SessionOutcome]:
        """Run the conversation.

        Returns ``None`` when the host cancelled the session before its final
        response was delivered.
        """
        try:
            await self._converse()
        except SessionCancelled:
            logger.info("Session cancelled by host", extra=self._log_extra())
        except asyncio.CancelledError:
            self._token.cancel()
            raise
        except Exception:
            logger.exception("Voice session failed", extra=self._log_extra())
            await self._report_unexpected_failure()
        finally:
            self._transition(SessionState.terminated)
            self._completion.complete()
        return self.outcome

    async def _converse(self) -> None:
        self._transition(SessionState.awaiting_reading)
        loading = formatter.loading_progress(self._condition)
        # Posted before any device work so the host hears back immediately.
        await self._call(self._transport.report_progress, loading)
        device = self._device_factory()

        try:
            raw = await self._call(device.fetch, DeviceCommand.READ_SENSORS, progress=loading)
            reading = parse_reading(raw)
        except DeviceReportedError as exc:
            logger.info(
                "Device reported a message instead of a reading",
                extra=self._log_extra(reason=exc.message),
            )
            await self._finish(OutcomeKind.success, formatter.device_message_reply(exc.message))
            return
        except (TransportError, ParseError) as exc:
            logger.warning(
                "Could not read storeroom sensors", extra=self._log_extra(reason=str(exc))
            )
            await self._finish(OutcomeKind.failed, formatter.failure_reply(str(exc)))
            return

        if decide(reading, self._threshold) is Decision.normal:
            self._transition(SessionState.normal)
            await self._finish(OutcomeKind.success, formatter.normal_reply(reading))
            return

        self._transition(SessionState.threshold_breach)
        await self._negotiate_fan(device)

    async def _negotiate_fan(self, device: Fetcher) -> None:
        self._transition(SessionState.awaiting_confirmation)
        # No local deadline while the user answers; the host owns that timeout.
        confirmed = await self._call(
            self._transport.request_confirmation, formatter.fan_prompt(self._threshold)
        )
        if confirmed is None:
            await self._finish(OutcomeKind.failed, formatter.failure_reply(_NO_ANSWER))
            return
        if not confirmed:
            await self._finish(OutcomeKind.declined, formatter.declined_reply())
            return

        self._transition(SessionState.actuating)
        opening = formatter.opening_fan_progress()
        await self._call(self._transport.report_progress, opening)
        try:
            body = await self._call(device.fetch, DeviceCommand.OPEN_FAN, progress=opening)
        except TransportError as exc:
            logger.warning("Fan command failed", extra=self._log_extra(reason=str(exc)))
            body = ""

        # Actuation trouble is still a spoken reply, not a failed session.
        reply = formatter.fan_opened_reply() if body else formatter.fan_failed_reply()
        await self._finish(OutcomeKind.success, reply)

    async def _finish(self, kind: OutcomeKind, response: VoiceResponse) -> None:
        if self.outcome is not None:
            logger.warning(
                "Ignoring second outcome", extra=self._log_extra(outcome=kind.value)
            )
            return
        self.outcome = SessionOutcome(kind=kind, response=response)
        logger.info("Session finished", extra=self._log_extra(outcome=kind.value))
        report = (
            self._transport.report_failure
            if kind is OutcomeKind.failed
            else self._transport.report_success
        )
        try:
            await self._call(report, response)
        except SessionCancelled:
            # Never delivered, so there is no outcome to hand back.
            self.outcome = None
            raise

    async def _report_unexpected_failure(self) -> None:
        if self.outcome is not None or self._token.cancelled:
            return
        try:
            await self._finish(OutcomeKind.failed, formatter.failure_reply(_GENERIC_FAILURE))
        except SessionCancelled:
            logger.info("Session cancelled while reporting failure", extra=self._log_extra())
        except Exception:
            logger.exception("Could not report session failure", extra=self._log_extra())

    async def _call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        progress: Optional[VoiceResponse] = None,
    ) -> Any:
        """Await an external call, honouring cancellation.

        With ``progress`` set, the progress turn is re-posted every
        ``progress_interval`` seconds until the call returns.
        """
        if self._token.cancelled:
            raise SessionCancelled()
        task = asyncio.ensure_future(func(*args))
        interval = self._progress_interval if progress is not None else None
        while not await self._wait(task, interval):
            try:
                await self._call(self._transport.report_progress, progress)
            except BaseException:
                await _abandon(task)
                raise
        return task.result()

    async def _wait(self, task: asyncio.Future, timeout: Optional[float]) -> bool:
        waiter = asyncio.ensure_future(self._token.wait())
        try:
            await asyncio.wait(
                {task, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            await _abandon(task)
            raise
        finally:
            waiter.cancel()

        if task.done():
            return True
        if self._token.cancelled:
            await _abandon(task)
            raise SessionCancelled()
        return False

    def _transition(self, state: SessionState) -> None:
        if state is self.state:
            return
        self.state = state
        logger.debug("Session state changed", extra=self._log_extra())

    def _log_extra(self, **extra: Any) -> dict[str, Any]:
        return {"session_id": self.session_id, "state": self.state.value, **extra}


async def _abandon(task: asyncio.Future) -> None:
    if task.done():
        return
    task.cancel()
    await asyncio.wait({task})


class VoiceCommandService:
    """Dispatches recognised voice commands to sessions."""

    def __init__(
        self,
        transport: SessionTransport,
        device_factory: Callable[[], Fetcher],
        *,
        threshold: float = DEFAULT_THRESHOLD_C,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
    ) -> None:
        self._transport = transport
        self._device_factory = device_factory
        self._threshold = threshold
        self._progress_interval = progress_interval

    async def handle(
        self,
        command: VoiceCommand,
        token: Optional[CancellationToken] = None,
        completion: Optional[CompletionSignal] = None,
    ) -> Optional[SessionOutcome]:
        completion = completion or CompletionSignal()
        try:
            if command.name == TEMPERATURE_COMMAND:
                session = TemperatureSession(
                    self._transport,
                    self._device_factory,
                    condition=command.first("condition", "condition"),
                    threshold=self._threshold,
                    progress_interval=self._progress_interval,
                    token=token,
                    completion=completion,
                )
                return await session.run()

            # A command registered by an older front-end that this build no longer handles.
            logger.info("Unknown voice command, launching app", extra={"command": command.name})
            if token is None or not token.cancelled:
                try:
                    await self._transport.request_app_launch(formatter.launch_app_reply())
                except Exception:
                    logger.exception("Could not request app launch", extra={"command": command.name})
            return None
        finally:
            completion.complete()
