from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "OK"


@router.get("/api/ws-stats")
async def websocket_stats(request: Request) -> dict[str, object]:
    return await request.app.state.runtime.get_ws_stats()
