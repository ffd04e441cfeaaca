"""Terminal chat: python -m chat_relay.client [ws-url]"""
from __future__ import annotations

import asyncio
import logging
import sys

from chat_relay.client.connection import ChatClient
from chat_relay.client.console import ConsoleRenderer
from chat_relay.client.conversation import ConversationState, ReconnectPolicy
from chat_relay.config import settings


async def _read_input(client: ChatClient) -> None:
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            await client.close()
            return
        if not await client.send_user_message(line) and client.state.error:
            sys.stdout.write(f"[{client.state.error}]\n")
            sys.stdout.flush()


async def _chat(url: str) -> None:
    state = ConversationState(
        policy=ReconnectPolicy(
            base_ms=settings.RECONNECT_BASE_DELAY_MS,
            max_ms=settings.RECONNECT_MAX_DELAY_MS,
        ),
        max_input_length=settings.MAX_INPUT_LENGTH,
    )
    client = ChatClient(url, state=state, listener=ConsoleRenderer(state))
    reader = asyncio.create_task(_read_input(client), name="stdin-reader")
    try:
        await client.run()
    finally:
        reader.cancel()


def main() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    url = sys.argv[1] if len(sys.argv) > 1 else settings.CHAT_WS_URL
    try:
        asyncio.run(_chat(url))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
