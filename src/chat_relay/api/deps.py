"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from chat_relay.application.ports.completion import CompletionProvider
from chat_relay.config import settings
from chat_relay.infrastructure.llm.groq_relay import GroqCompletionRelay

_relay: CompletionProvider | None = None


def get_relay() -> CompletionProvider:
    global _relay  # noqa: PLW0603
    if _relay is None:
        _relay = GroqCompletionRelay(
            api_key=settings.GROQ_API_KEY,
            model=settings.GROQ_MODEL,
            base_url=settings.GROQ_BASE_URL,
            timeout=settings.GROQ_TIMEOUT,
        )
    return _relay


RelayDep = Annotated[CompletionProvider, Depends(get_relay)]


def get_system_prompt() -> str:
    return settings.SYSTEM_PROMPT


SystemPromptDep = Annotated[str, Depends(get_system_prompt)]
