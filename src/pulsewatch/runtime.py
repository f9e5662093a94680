# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level pulsewatch facade wiring settings, HTTP client, prober and controller."""

from __future__ import annotations

from .config import MonitorSettings, load_settings
from .controller import PollingController, Scheduler, Sink, check_once
from .http.client import HttpClient, create_default_http_client
from .models.verdict import Verdict
from .probe import Prober, create_prober


class Pulsewatch:
    """
    Convenience wrapper that shares one HTTP client between one-shot checks and
    the polling controller.
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        *,
        http_client: HttpClient | None = None,
        prober: Prober | None = None,
    ):
        self.settings = (settings or load_settings()).validate()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.prober = prober or create_prober(self.settings, self.http_client)

    async def check(self) -> Verdict:
        return await check_once(self.prober)

    def controller(self, sink: Sink, *, scheduler: Scheduler | None = None) -> PollingController:
        return PollingController(self.prober, sink, settings=self.settings, scheduler=scheduler)

    async def aclose(self) -> None:
        await self.prober.aclose()

    async def __aenter__(self) -> Pulsewatch:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()
