from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_TIMEOUT: float = 60.0

    SYSTEM_PROMPT: str = "You are a helpful assistant."

    HOST: str = "0.0.0.0"
    PORT: int = 8080
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: Literal["debug", "info", "warning", "error"] = "info"

    CHAT_WS_URL: str = "ws://localhost:8080/ws"
    RECONNECT_BASE_DELAY_MS: int = 500
    RECONNECT_MAX_DELAY_MS: int = 8000
    MAX_INPUT_LENGTH: int = 500

    @property
    def provider_configured(self) -> bool:
        return bool(self.GROQ_API_KEY)

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
