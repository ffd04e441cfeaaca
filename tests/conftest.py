"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable

import pytest

from chat_relay.application.dto.history import ChatTurn
from chat_relay.domain.value_objects.ids import MessageId
from chat_relay.infrastructure.ws.protocol import WsOutbound

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@dataclass
class FixedClock:
    at: datetime = FIXED_NOW

    def now(self) -> datetime:
        return self.at


def sequential_ids(prefix: str = "msg") -> Callable[[], MessageId]:
    counter = itertools.count(1)
    return lambda: MessageId(f"{prefix}-{next(counter)}")


def user_message(*turns: tuple[str, str]) -> dict[str, Any]:
    return {
        "type": "user_message",
        "messages": [{"role": role, "content": content} for role, content in turns],
    }


@dataclass
class FakeSink:
    frames: list[WsOutbound] = field(default_factory=list)

    async def send(self, frame: WsOutbound) -> None:
        self.frames.append(frame)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(f.to_json()) for f in self.frames]

    def types(self) -> list[str]:
        return [str(f.type) for f in self.frames]

    def for_message(self, message_id: str) -> list[dict[str, Any]]:
        return [p for p in self.payloads() if p.get("messageId") == message_id]


@dataclass
class Script:
    """What one FakeRelay.stream call produces.

    With ``hold_before=i`` the stream blocks before fragment ``i`` (or before
    finishing, when ``i == len(fragments)``) until ``release`` is set.
    """

    fragments: list[str] = field(default_factory=list)
    error: Exception | None = None
    hold_before: int | None = None
    release: asyncio.Event = field(default_factory=asyncio.Event)


@dataclass
class FakeRelay:
    scripts: list[Script] = field(default_factory=list)
    configured: bool = True
    calls: list[tuple[str, list[ChatTurn]]] = field(default_factory=list)
    closed: int = 0

    def is_configured(self) -> bool:
        return self.configured

    async def stream(self, system_prompt: str, history: list[ChatTurn]) -> AsyncIterator[str]:
        self.calls.append((system_prompt, history))
        if self.scripts:
            script = self.scripts[min(len(self.calls), len(self.scripts)) - 1]
        else:
            script = Script()
        try:
            for i in range(len(script.fragments) + 1):
                if script.hold_before == i:
                    await script.release.wait()
                if i < len(script.fragments):
                    yield script.fragments[i]
            if script.error is not None:
                raise script.error
        finally:
            self.closed += 1


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()
