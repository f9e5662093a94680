# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Programmable HttpClient implementations."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from .client import HttpClient
from .models import HttpRequest, HttpResponse


class StubHttpClient(HttpClient):
    """Deterministic, programmable HttpClient for tests.

    Responses are served per URL; a list of responses is consumed in order and
    the last one repeats. ``delay`` makes every request wait on the event loop.
    """

    def __init__(
        self,
        responses: dict[str, HttpResponse | Iterable[HttpResponse]] | None = None,
        *,
        delay: float = 0.0,
    ):
        self._responses: dict[str, list[HttpResponse]] = {}
        for url, value in (responses or {}).items():
            self.add(url, value)
        self.delay = delay
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, url: str, response: HttpResponse | Iterable[HttpResponse]) -> None:
        if isinstance(response, HttpResponse):
            self._responses[url] = [response]
        else:
            self._responses[url] = list(response)

    async def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        queue = self._responses.get(request.url)
        if not queue:
            return HttpResponse(ok=False, error=ConnectionError("No stubbed response configured"))
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    async def aclose(self) -> None:
        self.closed = True
