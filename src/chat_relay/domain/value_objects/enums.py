from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FrameType(StrEnum):
    # client -> server
    USER_MESSAGE = "user_message"
    PING = "ping"
    # server -> client
    CONNECTION_READY = "connection_ready"
    PONG = "pong"
    AI_START = "ai_start"
    AI_CHUNK = "ai_chunk"
    AI_DONE = "ai_done"
    ERROR = "error"


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ControllerState(StrEnum):
    IDLE = "idle"
    STREAMING = "streaming"
