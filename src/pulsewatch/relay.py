# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
CORS relay.

Probes the target on behalf of a caller that cannot reach it directly (a
browser blocked by cross-origin rules) and answers HTTP 200 with a status
envelope, whatever happened upstream. Request bodies are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import MonitorSettings, load_settings
from .envelope import build_envelope
from .errors import error_kind_to_reason
from .http.client import HttpClient, create_default_http_client
from .log import uvicorn_log_level
from .models.probe import Failed
from .probe import DirectProber
from .version import __version__

logger = logging.getLogger(__name__)

RELAY_PATH = "/api/proxy"

ClientFactory = Callable[[MonitorSettings], HttpClient]


class Relay:
    """Probe-and-wrap logic, independent of the web app around it."""

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        *,
        client_factory: ClientFactory = create_default_http_client,
    ):
        self.settings = settings or load_settings()
        self._client_factory = client_factory

    async def envelope(self) -> dict[str, Any]:
        prober = DirectProber(self.settings, self._client_factory(self.settings))
        try:
            outcome = await prober.probe()
        finally:
            await prober.aclose()
        if isinstance(outcome, Failed):
            logger.warning(
                "Relay probe of %s failed (%s): %s",
                self.settings.target_url,
                error_kind_to_reason(outcome.error_kind),
                outcome.message,
            )
        return build_envelope(
            outcome,
            server_url=self.settings.target_url,
            snippet_bytes=self.settings.snippet_bytes,
        )


def create_app(relay: Relay | None = None) -> FastAPI:
    """Build the relay app; CORS preflight is answered by the middleware."""
    relay = relay or Relay()
    app = FastAPI(title="pulsewatch relay", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.relay = relay

    @app.get(RELAY_PATH)
    async def proxy() -> JSONResponse:
        envelope = await relay.envelope()
        return JSONResponse(envelope, headers={"Cache-Control": "no-store"})

    # Bare OPTIONS without CORS request headers bypasses the middleware.
    @app.options(RELAY_PATH)
    async def proxy_options() -> Response:
        return Response(status_code=200)

    return app


def serve_relay(settings: MonitorSettings | None = None) -> None:
    """Run the relay with uvicorn until interrupted."""
    import uvicorn

    relay = Relay(settings)
    host, port = relay.settings.relay_host, relay.settings.relay_port
    logger.warning("Relay for %s listening on http://%s:%s%s", relay.settings.target_url, host, port, RELAY_PATH)
    uvicorn.run(create_app(relay), host=host, port=port, log_level=uvicorn_log_level())


__all__ = ["RELAY_PATH", "Relay", "create_app", "serve_relay"]
