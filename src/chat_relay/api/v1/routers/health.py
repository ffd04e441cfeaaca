from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from chat_relay.api.v1.routers.ws import get_manager

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, Any]:
    return {"ok": True, "connections": len(get_manager())}
