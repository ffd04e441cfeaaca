"""Client conversation state machine.

Pure state: no sockets, no timers. ``ChatClient`` feeds it socket
lifecycle events and decoded server frames, and sends whatever
``submit`` returns.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chat_relay.application.ports.runtime import Clock, UtcClock
from chat_relay.domain.entities.message import Message
from chat_relay.domain.value_objects.enums import ConnectionState, FrameType, Role
from chat_relay.domain.value_objects.ids import MessageId, new_message_id

MAX_INPUT_LENGTH = 500


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """Exponential backoff: base, 2x base, ... capped at ``max_ms``."""

    base_ms: int = 500
    max_ms: int = 8000

    def delay_ms(self, attempt: int) -> int:
        return min(self.max_ms, self.base_ms * (2 ** attempt))


@dataclass
class ConversationState:
    policy: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    clock: Clock = field(default_factory=UtcClock)
    max_input_length: int = MAX_INPUT_LENGTH

    messages: list[Message] = field(default_factory=list)
    connection_status: ConnectionState = ConnectionState.CONNECTING
    reconnect_attempt: int = 0
    is_responding: bool = False
    waiting_for_first_chunk: bool = False
    active_ai_message_id: MessageId | None = None
    error: str = ""

    @property
    def can_send(self) -> bool:
        return self.connection_status == ConnectionState.CONNECTED and not self.is_responding

    def find(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def submit(self, text: str) -> dict[str, Any] | None:
        """Record a user turn and return the ``user_message`` frame to send.

        Returns None when the input is empty or longer than
        ``max_input_length``, the socket is not connected, or a response is
        still streaming.
        """
        self.error = ""
        text = text.strip()
        if not text:
            return None
        if len(text) > self.max_input_length:
            self.error = f"Message is too long (max {self.max_input_length} characters)"
            return None
        if self.connection_status != ConnectionState.CONNECTED:
            self.error = "Not connected"
            return None
        if self.is_responding:
            return None

        self.messages.append(
            Message(
                id=new_message_id(),
                role=Role.USER,
                content=text,
                created_at=self.clock.now(),
            )
        )
        self.is_responding = True
        self.waiting_for_first_chunk = True
        return {
            "type": FrameType.USER_MESSAGE.value,
            "messages": [
                {"role": m.role.value, "content": m.content} for m in self.messages
            ],
        }

    def on_connecting(self) -> None:
        self.error = ""
        self.connection_status = ConnectionState.CONNECTING

    def on_open(self) -> dict[str, Any]:
        """Mark connected and return the initial ping frame."""
        self.reconnect_attempt = 0
        self.connection_status = ConnectionState.CONNECTED
        return {"type": FrameType.PING.value}

    def on_disconnect(self, error: str | None = None) -> float:
        """Mark disconnected and return the delay in seconds before reconnecting."""
        self.connection_status = ConnectionState.DISCONNECTED
        if error:
            self.error = error
        # the server drops an in-flight completion with the socket
        self.is_responding = False
        self.waiting_for_first_chunk = False
        self.active_ai_message_id = None

        delay = self.policy.delay_ms(self.reconnect_attempt)
        self.reconnect_attempt += 1
        return delay / 1000

    def apply(self, payload: dict[str, Any]) -> None:
        kind = payload.get("type")

        if kind == FrameType.ERROR:
            self.error = payload.get("message") or "Server error"
            self.is_responding = False
            self.waiting_for_first_chunk = False
            self.active_ai_message_id = None

        elif kind == FrameType.AI_START:
            message_id = MessageId(str(payload.get("messageId")))
            self.is_responding = True
            self.waiting_for_first_chunk = True
            self.active_ai_message_id = message_id
            self.messages.append(
                Message(
                    id=message_id,
                    role=Role.ASSISTANT,
                    content="",
                    created_at=self._timestamp(payload.get("createdAt")),
                )
            )

        elif kind == FrameType.AI_CHUNK:
            message_id = payload.get("messageId")
            if message_id == self.active_ai_message_id:
                self.waiting_for_first_chunk = False
            message = self.find(message_id)
            if message is not None:
                delta = payload.get("delta")
                if isinstance(delta, str):
                    message.append(delta)

        elif kind == FrameType.AI_DONE:
            if payload.get("messageId") == self.active_ai_message_id:
                self.active_ai_message_id = None
            self.is_responding = False
            self.waiting_for_first_chunk = False

        # connection_ready, pong and unknown types carry no state

    def _timestamp(self, raw: Any) -> datetime:
        if isinstance(raw, str):
            try:
                return datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                pass
        return self.clock.now()
