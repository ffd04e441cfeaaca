from __future__ import annotations

import json
from typing import Any

import pytest
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close

from chat_relay.client.connection import ChatClient
from chat_relay.client.conversation import ConversationState
from chat_relay.domain.value_objects.enums import ConnectionState
from tests.conftest import FixedClock


class FakeWebSocket:
    def __init__(self, incoming: list[str], error: Exception | None = None) -> None:
        self.sent: list[dict[str, Any]] = []
        self._incoming = incoming
        self._error = error
        self.closed = False

    async def __aenter__(self) -> "FakeWebSocket":
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.closed = True

    async def send(self, raw: str) -> None:
        self.sent.append(json.loads(raw))

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for raw in self._incoming:
            yield raw
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.closed = True


class ScriptedConnector:
    """Hands out sockets in order; raises OSError once they run out."""

    def __init__(self, client_ref: list[ChatClient], sockets: list[FakeWebSocket], failures: int) -> None:
        self._client_ref = client_ref
        self._sockets = list(sockets)
        self._failures = failures
        self.urls: list[str] = []

    def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        if self._sockets:
            return self._sockets.pop(0)
        if self._failures:
            self._failures -= 1
            raise OSError("Connection refused")
        self._client_ref[0]._running = False
        raise OSError("Connection refused")


def make_client(sockets: list[FakeWebSocket], failures: int = 0):
    ref: list[ChatClient] = []
    delays: list[float] = []
    events: list[str] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    connector = ScriptedConnector(ref, sockets, failures)
    client = ChatClient(
        "ws://relay.test/ws",
        state=ConversationState(clock=FixedClock()),
        listener=lambda event, _payload: events.append(event),
        connect=connector,
        sleep=fake_sleep,
    )
    ref.append(client)
    return client, connector, delays, events


@pytest.mark.asyncio
async def test_pings_on_open_and_applies_frames():
    ws = FakeWebSocket([
        json.dumps({"type": "connection_ready", "createdAt": "2026-01-01T00:00:00Z"}),
        json.dumps({"type": "pong"}),
        json.dumps({"type": "ai_start", "messageId": "m1"}),
        json.dumps({"type": "ai_chunk", "messageId": "m1", "delta": "hey"}),
        json.dumps({"type": "ai_done", "messageId": "m1"}),
    ])
    client, connector, _, events = make_client([ws])

    await client.run()

    assert ws.sent[0] == {"type": "ping"}
    assert connector.urls[0] == "ws://relay.test/ws"
    assert client.state.find("m1").content == "hey"
    assert events[:6] == ["open", "connection_ready", "pong", "ai_start", "ai_chunk", "ai_done"]


@pytest.mark.asyncio
async def test_malformed_frames_are_ignored():
    ws = FakeWebSocket([
        "not json",
        "[1, 2]",
        json.dumps({"type": "ai_start", "messageId": "m1"}),
        json.dumps({"type": "ai_chunk", "messageId": "m1", "delta": "ok"}),
    ])
    client, _, _, events = make_client([ws])

    await client.run()

    assert client.state.find("m1").content == "ok"
    assert "ai_chunk" in events


@pytest.mark.asyncio
async def test_reconnects_with_exponential_backoff():
    client, connector, delays, _ = make_client([FakeWebSocket([])], failures=3)

    await client.run()

    assert delays == [0.5, 1.0, 2.0, 4.0]
    assert len(connector.urls) == 5
    assert client.state.connection_status == ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_successful_connect_resets_backoff():
    client, _, delays, _ = make_client(
        [FakeWebSocket([]), FakeWebSocket([])], failures=0,
    )

    await client.run()

    assert delays == [0.5, 0.5]


@pytest.mark.asyncio
async def test_abnormal_close_is_reported():
    ws = FakeWebSocket([], error=ConnectionClosedError(Close(1006, ""), None))
    client, _, delays, events = make_client([ws])

    await client.run()

    assert delays[0] == 0.5
    assert "disconnected" in events
    assert client.state.error == "WebSocket error"


@pytest.mark.asyncio
async def test_send_user_message_when_connected():
    client, _, _, _ = make_client([])
    ws = FakeWebSocket([])
    client._ws = ws
    client.state.on_open()

    assert await client.send_user_message("hello") is True
    assert ws.sent == [
        {"type": "user_message", "messages": [{"role": "user", "content": "hello"}]},
    ]


@pytest.mark.asyncio
async def test_send_user_message_rejected_when_disconnected():
    client, _, _, _ = make_client([])

    assert await client.send_user_message("hello") is False
    assert client.state.error == "Not connected"


@pytest.mark.asyncio
async def test_close_stops_the_loop():
    client, _, _, _ = make_client([])
    ws = FakeWebSocket([])
    client._ws = ws

    await client.close()

    assert ws.closed is True
    assert client._running is False
