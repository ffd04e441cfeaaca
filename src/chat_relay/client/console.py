"""Terminal rendering of conversation events."""
from __future__ import annotations

import sys
from typing import Any, TextIO

from chat_relay.client.conversation import ConversationState
from chat_relay.domain.value_objects.enums import FrameType

TYPING = "AI is typing..."


class ConsoleRenderer:
    """ChatClient listener that prints deltas as they arrive.

    Shows a typing line while the state waits for the first chunk of the
    active response and erases it once text starts flowing.
    """

    def __init__(self, state: ConversationState, out: TextIO | None = None) -> None:
        self._state = state
        self._out = out or sys.stdout
        self._typing = False

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        if event == FrameType.AI_START:
            if self._state.waiting_for_first_chunk:
                self._out.write(TYPING)
                self._typing = True
        elif event == FrameType.AI_CHUNK:
            if not self._state.waiting_for_first_chunk:
                self._clear_typing()
            delta = payload.get("delta")
            if isinstance(delta, str):
                self._out.write(delta)
        elif event == FrameType.AI_DONE:
            self._clear_typing()
            self._out.write("\n")
        elif event == FrameType.ERROR:
            self._clear_typing()
            self._out.write(f"\n[error] {payload.get('message') or 'Server error'}\n")
        elif event == "open":
            self._out.write("[connected]\n")
        elif event == "disconnected":
            self._clear_typing()
            self._out.write(f"[disconnected, retrying in {payload['delay']:.1f}s]\n")
        self._out.flush()

    def _clear_typing(self) -> None:
        if self._typing:
            self._out.write("\r" + " " * len(TYPING) + "\r")
            self._typing = False
