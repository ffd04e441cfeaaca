from __future__ import annotations

from typing import AsyncIterator, Protocol

from chat_relay.application.dto.history import ChatTurn


class CompletionProvider(Protocol):
    def is_configured(self) -> bool: ...

    def stream(self, system_prompt: str, history: list[ChatTurn]) -> AsyncIterator[str]:
        """Yield text fragments; raise CompletionError on failure."""
        ...
