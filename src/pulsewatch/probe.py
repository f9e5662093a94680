# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probers: one GET against the target (directly or through the relay) per call."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from .config import MonitorSettings, load_settings
from .envelope import outcome_from_envelope
from .errors import ErrorKind, RelayError, categorize_exception
from .http.client import HttpClient, create_default_http_client
from .http.models import HttpRequest, HttpResponse
from .models.probe import Failed, ProbeOutcome, Responded

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Prober(Protocol):
    async def probe(self) -> ProbeOutcome: ...

    async def aclose(self) -> None: ...


def outcome_from_response(response: HttpResponse, elapsed_ms: int) -> ProbeOutcome:
    """Turn a normalized HttpResponse into a ProbeOutcome."""
    if response.ok and response.status_code is not None:
        return Responded(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            body_text=response.text,
            elapsed_ms=elapsed_ms,
        )
    if response.error is not None:
        kind = categorize_exception(response.error)
    else:
        kind = ErrorKind.UNKNOWN
    return Failed(kind, response.error_message or "no response", elapsed_ms)


class _DeadlineProber:
    """Shared plumbing: hard deadline around a single request plus elapsed timing."""

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        http_client: HttpClient | None = None,
        *,
        clock: Clock = time.monotonic,
    ):
        self.settings = settings or load_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self._clock = clock

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int(round((self._clock() - started) * 1000)))

    async def _send(self, request: HttpRequest) -> tuple[HttpResponse | None, int]:
        started = self._clock()
        try:
            response = await asyncio.wait_for(self.http_client.request(request), timeout=self.settings.timeout)
        except asyncio.TimeoutError:
            return None, self._elapsed_ms(started)
        return response, self._elapsed_ms(started)

    async def aclose(self) -> None:
        await self.http_client.aclose()


class DirectProber(_DeadlineProber):
    """GET the configured target with the fixed request headers."""

    def build_request(self) -> HttpRequest:
        return HttpRequest(
            url=self.settings.target_url,
            headers=self.settings.request_headers,
            timeout=self.settings.timeout,
            allow_redirects=self.settings.allow_redirects,
        )

    async def probe(self) -> ProbeOutcome:
        response, elapsed_ms = await self._send(self.build_request())
        if response is None:
            logger.debug("Probe of %s aborted after %sms", self.settings.target_url, elapsed_ms)
            return Failed(ErrorKind.TIMEOUT, "aborted", elapsed_ms)
        return outcome_from_response(response, elapsed_ms)


class RelayProber(_DeadlineProber):
    """GET the relay and adapt its envelope; relay trouble becomes RELAY_ERROR."""

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        http_client: HttpClient | None = None,
        *,
        relay_url: str | None = None,
        clock: Clock = time.monotonic,
    ):
        super().__init__(settings, http_client, clock=clock)
        url = relay_url or self.settings.relay_url
        if not url:
            raise RelayError("No relay URL configured")
        self.relay_url = url

    def build_request(self) -> HttpRequest:
        return HttpRequest(
            url=self.relay_url,
            headers={"Accept": "application/json", "Cache-Control": "no-cache"},
            timeout=self.settings.timeout,
        )

    async def probe(self) -> ProbeOutcome:
        response, elapsed_ms = await self._send(self.build_request())
        if response is None:
            return Failed(ErrorKind.TIMEOUT, "aborted", elapsed_ms)
        try:
            return self._unwrap(response, elapsed_ms)
        except RelayError as exc:
            logger.warning("Relay %s unusable: %s", self.relay_url, exc)
            return Failed(ErrorKind.RELAY_ERROR, str(exc), elapsed_ms)

    def _unwrap(self, response: HttpResponse, elapsed_ms: int) -> ProbeOutcome:
        if not response.ok or response.status_code is None:
            outcome = outcome_from_response(response, elapsed_ms)
            if isinstance(outcome, Failed) and outcome.error_kind == ErrorKind.TIMEOUT:
                return outcome
            raise RelayError(f"Relay unreachable: {response.error_message or 'no response'}")
        if response.status_code != 200:
            raise RelayError(f"Relay returned HTTP {response.status_code}")
        try:
            data = json.loads(response.text)
        except ValueError as exc:
            raise RelayError("Relay returned invalid JSON") from exc
        outcome = outcome_from_envelope(data)
        if outcome.elapsed_ms is None:
            # Envelope without responseTime: fall back to the round trip through the relay.
            return replace(outcome, elapsed_ms=elapsed_ms)
        return outcome


def create_prober(settings: MonitorSettings | None = None, http_client: HttpClient | None = None) -> Prober:
    """Relay-backed prober when a relay URL is configured, direct otherwise."""
    settings = settings or load_settings()
    if settings.relay_url:
        return RelayProber(settings, http_client)
    return DirectProber(settings, http_client)


__all__ = [
    "DirectProber",
    "Prober",
    "RelayProber",
    "create_prober",
    "outcome_from_response",
]
