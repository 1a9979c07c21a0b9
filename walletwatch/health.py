"""HTTP liveness endpoint for external uptime probes."""

from __future__ import annotations

import contextlib
from typing import Iterator

import uvicorn
from fastapi import FastAPI

ALIVE_PAYLOAD = {"status": "alive", "service": "walletwatch"}


def create_health_app() -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/")
    def root() -> dict:
        return ALIVE_PAYLOAD

    @app.get("/health")
    def health() -> dict:
        return {"ok": True}

    return app


class EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the bot's own shutdown handler."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def build_health_server(host: str, port: int) -> uvicorn.Server:
    """Return a server that can be awaited inside the bot's event loop."""
    config = uvicorn.Config(
        create_health_app(),
        host=host,
        port=port,
        log_config=None,
        access_log=False,
    )
    return EmbeddedServer(config)


__all__ = ["ALIVE_PAYLOAD", "EmbeddedServer", "build_health_server", "create_health_app"]
