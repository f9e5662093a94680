# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for pulsewatch."""

from ..http.models import Headers, HttpRequest, HttpResponse
from .probe import Failed, ProbeOutcome, Responded
from .verdict import HealthState, StatusSnapshot, Verdict

__all__ = [
    "Failed",
    "Headers",
    "HealthState",
    "HttpRequest",
    "HttpResponse",
    "ProbeOutcome",
    "Responded",
    "StatusSnapshot",
    "Verdict",
]
