"""WebSocket frame models.

Frames are flat JSON objects keyed by ``type`` with camelCase fields.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_relay.domain.value_objects.enums import FrameType


class WsInbound(BaseModel):
    """Client → Server. ``messages`` is validated by the controller."""

    model_config = ConfigDict(extra="ignore")

    type: Any = None
    messages: Any = None


class WsOutbound(BaseModel):
    """Server → Client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: FrameType

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class ConnectionReady(WsOutbound):
    type: Literal[FrameType.CONNECTION_READY] = FrameType.CONNECTION_READY
    created_at: datetime


class Pong(WsOutbound):
    type: Literal[FrameType.PONG] = FrameType.PONG


class AiStart(WsOutbound):
    type: Literal[FrameType.AI_START] = FrameType.AI_START
    message_id: str
    created_at: datetime


class AiChunk(WsOutbound):
    type: Literal[FrameType.AI_CHUNK] = FrameType.AI_CHUNK
    message_id: str
    delta: str


class AiDone(WsOutbound):
    type: Literal[FrameType.AI_DONE] = FrameType.AI_DONE
    message_id: str


class ErrorFrame(WsOutbound):
    type: Literal[FrameType.ERROR] = FrameType.ERROR
    message: str
    message_id: str | None = None
