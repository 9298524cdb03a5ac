from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import Any
from urllib import error, request

from .config import settings

logger = logging.getLogger(__name__)


class PuzzleAnswerError(RuntimeError):
    pass


def build_puzzle_answer_url(day: date, template: str | None = None) -> str:
    return (template or settings.puzzle_answer_url_template).format(date=day.isoformat())


def _request_puzzle_answer(url: str) -> Any:
    raw_request = request.Request(
        url,
        headers={"Accept": "application/json", "User-Agent": "rulerush-server"},
        method="GET",
    )
    try:
        with request.urlopen(raw_request, timeout=settings.puzzle_answer_timeout_seconds) as response:
            return json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        raise PuzzleAnswerError(f"HTTP {exc.code} from puzzle service") from exc
    except Exception as exc:
        raise PuzzleAnswerError(str(exc)) from exc


async def fetch_puzzle_answer(day: date | None = None) -> Any:
    """Fetch the date-keyed daily puzzle payload from the upstream service."""
    url = build_puzzle_answer_url(day or date.today())
    try:
        return await asyncio.to_thread(_request_puzzle_answer, url)
    except PuzzleAnswerError as exc:
        logger.warning("puzzle_answer fetch failed url=%s reason=%s", url, exc)
        raise
