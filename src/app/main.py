# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""XP relay server -- FastAPI application factory and entry point.

    vibe-relay                      # serve on settings.host:settings.port
    VIBE_PORT=3333 vibe-relay       # override via environment
"""

from __future__ import annotations

import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.config import Settings, settings as default_settings
from app.routers.ws import ConnectionManager, router as ws_router
from app.routers.xp import router as xp_router

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(title=f"{settings.app_name} XP Relay", debug=settings.debug)
    app.state.settings = settings
    app.state.manager = ConnectionManager()
    app.state.start_time = time.monotonic()
    app.state.max_body_bytes = settings.max_body_bytes

    @app.middleware("http")
    async def limit_body_and_harden(request: Request, call_next):
        length = request.headers.get("content-length")
        if length is not None and length.isdigit() and int(length) > settings.max_body_bytes:
            response = JSONResponse({"detail": "Payload too large"}, status_code=413)
        else:
            response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(xp_router)
    app.include_router(ws_router)
    return app


def main() -> None:
    import uvicorn

    logger.remove()
    logger.add(sys.stderr, level=default_settings.log_level.upper())
    logger.info(f"XP relay listening on {default_settings.host}:{default_settings.port}")
    uvicorn.run(
        create_app(default_settings),
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
