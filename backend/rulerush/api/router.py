from __future__ import annotations

from fastapi import APIRouter

from rulerush.api.puzzle import router as puzzle_router
from rulerush.api.system import router as system_router
from rulerush.api.ws import router as ws_router

api_router = APIRouter()
api_router.include_router(system_router)
api_router.include_router(puzzle_router)
api_router.include_router(ws_router)
