"""ASGI application answering external uptime checks for AppyBot."""
from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from appybot.config import WebAppConfig
from appybot.localization import ENGLISH_TEXTS


app = FastAPI(title="AppyBot liveness", docs_url=None, redoc_url=None, openapi_url=None)


@app.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return ENGLISH_TEXTS.liveness


def build_server(config: WebAppConfig) -> uvicorn.Server:
    """Create a uvicorn server that shares the caller's event loop."""

    server_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level="warning",
        lifespan="off",
    )
    return uvicorn.Server(server_config)


__all__ = ["app", "build_server"]
