"""Time and identity sources, injectable for tests."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol

from chat_relay.domain.value_objects.ids import MessageId

IdFactory = Callable[[], MessageId]


class Clock(Protocol):
    def now(self) -> datetime: ...


class UtcClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
