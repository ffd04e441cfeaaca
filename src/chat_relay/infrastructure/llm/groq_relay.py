"""Completion Relay over Groq's OpenAI-compatible streaming endpoint."""
from __future__ import annotations

import logging
from typing import AsyncIterator

from openai import APIError, AsyncOpenAI, OpenAIError

from chat_relay.application.dto.history import ChatTurn
from chat_relay.application.exceptions import CompletionError
from chat_relay.application.policies.history import build_prompt

logger = logging.getLogger(__name__)


class GroqCompletionRelay:
    """Implements application.ports.completion.CompletionProvider."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
        ) if api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    async def stream(self, system_prompt: str, history: list[ChatTurn]) -> AsyncIterator[str]:
        if self.client is None:
            raise CompletionError("Completion provider is not configured")

        messages = build_prompt(system_prompt, history)
        logger.debug("Starting stream: model=%s, messages=%d", self.model, len(messages))
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                stream=True,
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
        except APIError as exc:
            logger.exception("Error during streaming: model=%s", self.model)
            raise CompletionError(exc.message or "Server error") from exc
        except OpenAIError as exc:
            logger.exception("Error during streaming: model=%s", self.model)
            raise CompletionError(str(exc) or "Server error") from exc
