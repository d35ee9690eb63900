from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moleduel.api.router import api_router
from moleduel.config import settings
from moleduel.runtime import runtime

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))


def create_app() -> FastAPI:
    app = FastAPI(title="Mole Duel Backend", version="1.0.0")

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
        await runtime.shutdown()

    return app


app = create_app()
