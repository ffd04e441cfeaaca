from __future__ import annotations

from typing import Any

from chat_relay.application.dto.history import ChatTurn
from chat_relay.application.exceptions import ValidationError
from chat_relay.domain.value_objects.enums import Role

_ALLOWED_ROLES = (Role.USER.value, Role.ASSISTANT.value)


def sanitize_history(raw: Any) -> list[ChatTurn]:
    """Keep only well-formed user/assistant turns, in order.

    Raises ValidationError when ``raw`` is not a non-empty list or when no
    entry survives filtering.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("messages must be a non-empty array")

    turns = [
        ChatTurn(role=Role(entry["role"]), content=entry["content"])
        for entry in raw
        if isinstance(entry, dict)
        and isinstance(entry.get("content"), str)
        and entry.get("role") in _ALLOWED_ROLES
    ]
    if not turns:
        raise ValidationError("messages contains no valid user or assistant entries")
    return turns


def build_prompt(system_prompt: str, history: list[ChatTurn]) -> list[dict[str, str]]:
    """Provider message list: the system instruction followed by the history."""
    return [
        {"role": Role.SYSTEM.value, "content": system_prompt},
        *(turn.as_dict() for turn in history),
    ]
