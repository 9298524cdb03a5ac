from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PUZZLE_ANSWER_URL_TEMPLATE = "https://www.nytimes.com/svc/wordle/v2/{date}.json"


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"
        self.port = int(os.getenv("PORT") or os.getenv("WS_PORT") or "3001")
        self.default_time_limit_minutes = max(
            1,
            int(os.getenv("DEFAULT_TIME_LIMIT_MINUTES", "60")),
        )
        self.empty_room_sweep_ms = max(
            0,
            int(os.getenv("EMPTY_ROOM_SWEEP_MS", "300000")),
        )
        self.puzzle_answer_url_template = (
            os.getenv("PUZZLE_ANSWER_URL_TEMPLATE", DEFAULT_PUZZLE_ANSWER_URL_TEMPLATE).strip()
            or DEFAULT_PUZZLE_ANSWER_URL_TEMPLATE
        )
        self.puzzle_answer_timeout_seconds = max(
            1,
            int(os.getenv("PUZZLE_ANSWER_TIMEOUT_SECONDS", "10")),
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
        self.cors_allow_origins = [
            origin.strip() for origin in raw_origins.split(",") if origin.strip()
        ] or ["*"]

    @property
    def default_time_limit_ms(self) -> int:
        return self.default_time_limit_minutes * 60 * 1000


settings = Settings()
