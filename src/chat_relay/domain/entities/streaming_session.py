from __future__ import annotations

from dataclasses import dataclass

from chat_relay.domain.value_objects.ids import MessageId


@dataclass(slots=True)
class StreamingSession:
    """One in-flight completion on a connection."""

    message_id: MessageId
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True
