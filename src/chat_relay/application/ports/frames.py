from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chat_relay.infrastructure.ws.protocol import WsOutbound


@runtime_checkable
class FrameSink(Protocol):
    """Where a session controller writes outbound frames."""

    async def send(self, frame: WsOutbound) -> None: ...
