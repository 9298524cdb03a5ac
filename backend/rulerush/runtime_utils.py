from __future__ import annotations

import random
import time
import uuid
from typing import Any

from .runtime_constants import DEFAULT_TIME_LIMIT_MS, ROOM_CODE_CHARS, ROOM_CODE_LENGTH


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def random_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(random.choice(ROOM_CODE_CHARS) for _ in range(length))


def sanitize_room_code(raw: Any) -> str:
    return str(raw or "").strip().upper()


def time_limit_ms_from_minutes(minutes: int | None, default_ms: int = DEFAULT_TIME_LIMIT_MS) -> int:
    """Convert a client-supplied limit in whole minutes, falling back to the default."""
    if not minutes or minutes <= 0:
        return default_ms
    return int(minutes) * 60 * 1000
