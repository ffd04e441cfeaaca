"""WebSocket client: keeps a ConversationState in sync with the server."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from chat_relay.client.conversation import ConversationState

logger = logging.getLogger(__name__)

# (event, payload): event is a server frame type, "open" or "disconnected"
Listener = Callable[[str, dict[str, Any]], None]


class ChatClient:
    """Connect, receive, reconnect with backoff until ``close`` is called."""

    def __init__(
        self,
        url: str,
        state: ConversationState | None = None,
        listener: Listener | None = None,
        connect: Callable[[str], Any] = websockets.connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self.state = state or ConversationState()
        self._listener = listener
        self._connect = connect
        self._sleep = sleep
        self._ws: Any = None
        self._running = True

    async def run(self) -> None:
        while self._running:
            self.state.on_connecting()
            error: str | None = None
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    await self._send(self.state.on_open())
                    logger.info("Connected to %s", self.url)
                    self._notify("open", {})
                    async for raw in ws:
                        self._dispatch(raw)
            except ConnectionClosedOK:
                pass
            except (ConnectionClosed, WebSocketException, OSError) as exc:
                logger.warning("WebSocket error: %s", exc)
                error = "WebSocket error"
            finally:
                self._ws = None

            delay = self.state.on_disconnect(error)
            if not self._running:
                break
            logger.info(
                "Disconnected, reconnecting in %.1fs (attempt %d)",
                delay,
                self.state.reconnect_attempt,
            )
            self._notify("disconnected", {"delay": delay, "error": error})
            await self._sleep(delay)

    async def send_user_message(self, text: str) -> bool:
        """Submit user input; False if the state machine rejected it."""
        frame = self.state.submit(text)
        if frame is None:
            return False
        await self._send(frame)
        return True

    async def close(self) -> None:
        self._running = False
        if self._ws is not None:
            await self._ws.close()

    async def _send(self, frame: dict[str, Any]) -> None:
        if self._ws is None:
            logger.warning("Socket not open, dropping %s frame", frame.get("type"))
            return
        try:
            await self._ws.send(json.dumps(frame))
        except ConnectionClosed:
            logger.warning("Socket closed while sending %s frame", frame.get("type"))

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            payload = json.loads(raw)
        except ValueError:
            return
        if not isinstance(payload, dict):
            return
        self.state.apply(payload)
        self._notify(str(payload.get("type")), payload)

    def _notify(self, event: str, payload: dict[str, Any]) -> None:
        if self._listener is not None:
            self._listener(event, payload)
