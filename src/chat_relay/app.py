from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_relay.api.v1.routers import health, ws
from chat_relay.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    if not settings.provider_configured:
        logger.warning("GROQ_API_KEY is not set; user messages will be rejected")
    logger.info("WebSocket endpoint ready at /ws (model=%s)", settings.GROQ_MODEL)

    yield

    await ws.get_manager().close_all()
    logger.info("All sessions closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chat Relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(ws.router)

    return app
