from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rulerush.api.router import api_router
from rulerush.config import settings
from rulerush.runtime import SessionRuntime, runtime as default_runtime


def create_app(session_runtime: SessionRuntime | None = None) -> FastAPI:
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="RuleRush Session Server", version="1.0.0")
    app.state.runtime = session_runtime or default_runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.runtime.shutdown()

    return app


app = create_app()
