from __future__ import annotations

from .config import settings

ROOM_CODE_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ROOM_CODE_LENGTH = 6
DEFAULT_TIME_LIMIT_MS = settings.default_time_limit_ms
EMPTY_ROOM_SWEEP_MS = settings.empty_room_sweep_ms

INVALID_MESSAGE_FORMAT = "Invalid message format"
JOIN_FAILED_MESSAGE = "Room not found or game already started"
HOST_ONLY_START_MESSAGE = "Only the host can start the game"
HOST_ONLY_STOP_MESSAGE = "Only the host can stop the game"
GAME_NOT_RUNNING_MESSAGE = "Game is not running"
GAME_ALREADY_STARTED_MESSAGE = "Game already started"
