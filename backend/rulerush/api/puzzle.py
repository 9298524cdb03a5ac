from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from rulerush.puzzle_answer import PuzzleAnswerError, fetch_puzzle_answer

router = APIRouter(tags=["puzzle"])


@router.get("/wordle")
async def daily_puzzle_answer() -> Any:
    try:
        return await fetch_puzzle_answer()
    except PuzzleAnswerError as exc:
        raise HTTPException(status_code=502, detail="Puzzle service unavailable") from exc
