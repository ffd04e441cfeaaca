"""Per-connection controller: at most one streaming completion at a time."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from chat_relay.application.dto.history import ChatTurn
from chat_relay.application.exceptions import (
    AppError,
    CompletionError,
    ProviderNotConfiguredError,
)
from chat_relay.application.policies.history import sanitize_history
from chat_relay.application.ports.completion import CompletionProvider
from chat_relay.application.ports.frames import FrameSink
from chat_relay.application.ports.runtime import Clock, IdFactory, UtcClock
from chat_relay.domain.entities.streaming_session import StreamingSession
from chat_relay.domain.value_objects.enums import ControllerState, FrameType
from chat_relay.domain.value_objects.ids import new_message_id
from chat_relay.infrastructure.ws.protocol import (
    AiChunk,
    AiDone,
    AiStart,
    ErrorFrame,
    Pong,
    WsInbound,
)

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Missing GROQ_API_KEY on server"


class SessionController:
    """Dispatches inbound frames for one connection.

    The active StreamingSession lives on the instance; a newer
    ``user_message`` cancels it, and only the active session may emit
    frames.
    """

    def __init__(
        self,
        sink: FrameSink,
        relay: CompletionProvider,
        system_prompt: str,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory = new_message_id,
    ) -> None:
        self._sink = sink
        self._relay = relay
        self._system_prompt = system_prompt
        self._clock = clock or UtcClock()
        self._id_factory = id_factory
        self._active: StreamingSession | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ControllerState:
        if self._active is not None and not self._active.cancelled:
            return ControllerState.STREAMING
        return ControllerState.IDLE

    @property
    def active_session(self) -> StreamingSession | None:
        return self._active

    async def handle(self, payload: dict[str, Any]) -> None:
        frame = WsInbound.model_validate(payload)

        if frame.type == FrameType.PING:
            await self._sink.send(Pong())
        elif frame.type == FrameType.USER_MESSAGE:
            await self._handle_user_message(frame)
        else:
            await self._sink.send(ErrorFrame(message="Unknown message type"))

    async def _handle_user_message(self, frame: WsInbound) -> None:
        try:
            history = sanitize_history(frame.messages)
            if not self._relay.is_configured():
                raise ProviderNotConfiguredError(MISSING_CREDENTIALS)
        except AppError as exc:
            logger.info("Rejected user_message: %s", exc.detail)
            await self._sink.send(ErrorFrame(message=exc.detail))
            return

        if self._active is not None:
            logger.info("Superseding completion %s", self._active.message_id)
            self._active.cancel()

        session = StreamingSession(message_id=self._id_factory())
        self._active = session
        await self._sink.send(
            AiStart(message_id=session.message_id, created_at=self._clock.now())
        )
        logger.info(
            "Completion %s started (history=%d)", session.message_id, len(history),
        )
        task = asyncio.create_task(
            self._run(session, history), name=f"completion-{session.message_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, session: StreamingSession, history: list[ChatTurn]) -> None:
        stream = None
        try:
            stream = self._relay.stream(self._system_prompt, history)
            async for delta in stream:
                if session.cancelled:
                    break
                await self._sink.send(AiChunk(message_id=session.message_id, delta=delta))
            if session.cancelled:
                logger.info("Completion %s aborted", session.message_id)
                return
            await self._sink.send(AiDone(message_id=session.message_id))
            logger.info("Completion %s done", session.message_id)
        except CompletionError as exc:
            await self._fail(session, exc.detail or "Server error")
        except Exception:
            logger.exception("Completion %s crashed", session.message_id)
            await self._fail(session, "Server error")
        finally:
            await _aclose(stream)
            if self._active is session:
                self._active = None

    async def _fail(self, session: StreamingSession, message: str) -> None:
        if session.cancelled:
            logger.info("Completion %s aborted with error: %s", session.message_id, message)
            return
        logger.warning("Completion %s failed: %s", session.message_id, message)
        await self._sink.send(ErrorFrame(message_id=session.message_id, message=message))

    async def wait_idle(self) -> None:
        """Wait for every completion task started so far to finish."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    async def close(self) -> None:
        """Connection gone: cancel the active session without sending anything."""
        if self._active is not None:
            self._active.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _aclose(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
