"""Server side Transport Session: one accepted WebSocket."""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any, AsyncIterator

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from chat_relay.application.ports.runtime import Clock, UtcClock
from chat_relay.infrastructure.ws.protocol import ConnectionReady, ErrorFrame, WsOutbound

logger = logging.getLogger(__name__)


class WsTransport:
    def __init__(self, ws: WebSocket, clock: Clock | None = None) -> None:
        self._ws = ws
        self._clock = clock or UtcClock()
        self.connection_id = uuid.uuid4().hex

    @property
    def is_open(self) -> bool:
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    async def open(self) -> None:
        await self._ws.accept()
        logger.info("WS connected: %s", self.connection_id)
        await self.send(ConnectionReady(created_at=self._clock.now()))

    async def send(self, frame: WsOutbound) -> None:
        """Deliver a frame; drops it with a warning if the socket is not open."""
        if not self.is_open:
            logger.warning("WS %s not open, dropping %s frame", self.connection_id, frame.type)
            return
        try:
            await self._ws.send_text(frame.to_json())
        except Exception:
            logger.warning("WS %s send of %s failed", self.connection_id, frame.type, exc_info=True)

    async def frames(self) -> AsyncIterator[dict[str, Any]]:
        """Yield each received frame parsed as a JSON object until disconnect.

        Unparseable frames get an error reply and are skipped.
        """
        while True:
            message = await self._ws.receive()
            if message["type"] == "websocket.disconnect":
                return
            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            try:
                payload = json.loads(raw)
            except ValueError:
                payload = None
            if not isinstance(payload, dict):
                await self.send(ErrorFrame(message="Invalid JSON"))
                continue
            yield payload

    async def close(self) -> None:
        if self.is_open:
            try:
                await self._ws.close()
            except RuntimeError:
                logger.debug("WS %s already closed", self.connection_id)
        logger.info("WS disconnected: %s", self.connection_id)
