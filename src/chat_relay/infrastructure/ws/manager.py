"""In-process registry of live WebSocket sessions."""
from __future__ import annotations

import logging

from chat_relay.services.session_controller import SessionController

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks the controller of every open connection by connection id."""

    def __init__(self) -> None:
        self._controllers: dict[str, SessionController] = {}

    def __len__(self) -> int:
        return len(self._controllers)

    def connect(self, connection_id: str, controller: SessionController) -> None:
        self._controllers[connection_id] = controller
        logger.debug("Session registered: %s (total=%d)", connection_id, len(self._controllers))

    async def disconnect(self, connection_id: str) -> None:
        controller = self._controllers.pop(connection_id, None)
        if controller is not None:
            await controller.close()
        logger.debug("Session released: %s (total=%d)", connection_id, len(self._controllers))

    async def close_all(self) -> None:
        for connection_id in list(self._controllers):
            await self.disconnect(connection_id)
