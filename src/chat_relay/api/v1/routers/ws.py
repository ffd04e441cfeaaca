from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket

from chat_relay.api.deps import RelayDep, SystemPromptDep
from chat_relay.infrastructure.ws.manager import ConnectionManager
from chat_relay.infrastructure.ws.transport import WsTransport
from chat_relay.services.session_controller import SessionController

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


@router.websocket("/ws")
async def ws_chat(
    websocket: WebSocket,
    relay: RelayDep,
    system_prompt: SystemPromptDep,
) -> None:
    transport = WsTransport(websocket)
    controller = SessionController(transport, relay, system_prompt)
    cid = transport.connection_id

    manager.connect(cid, controller)
    try:
        await transport.open()
        async for payload in transport.frames():
            await controller.handle(payload)
    except Exception:
        logger.exception("WS error for %s", cid)
    finally:
        await manager.disconnect(cid)
        await transport.close()
