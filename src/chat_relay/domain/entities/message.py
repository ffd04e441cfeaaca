from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chat_relay.domain.value_objects.enums import Role
from chat_relay.domain.value_objects.ids import MessageId


@dataclass(slots=True)
class Message:
    """One entry of a conversation log.

    Only ``content`` changes after creation, and only by appending.
    """

    id: MessageId
    role: Role
    content: str
    created_at: datetime

    def append(self, delta: str) -> None:
        self.content += delta
