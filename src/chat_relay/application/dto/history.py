from __future__ import annotations

from dataclasses import dataclass

from chat_relay.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class ChatTurn:
    role: Role
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}
