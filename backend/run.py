from __future__ import annotations

import uvicorn

from rulerush.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "rulerush.application:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
