# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Verdicts and the snapshots handed to presentation sinks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class HealthState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    CHECKING = "checking"


@dataclass(frozen=True)
class Verdict:
    state: HealthState
    reason: str
    elapsed_ms: int | None = None

    @property
    def is_online(self) -> bool:
        return self.state == HealthState.ONLINE

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.state.value, "reason": self.reason, "elapsed_ms": self.elapsed_ms}


@dataclass(frozen=True)
class StatusSnapshot:
    """State of the monitor after a verdict was emitted.

    ``last_checked`` only moves when a probe was classified; CHECKING and
    no-connectivity verdicts keep the previous value.
    """

    verdict: Verdict
    last_checked: datetime | None = None
    connected: bool = True

    @property
    def elapsed_ms(self) -> int | None:
        return self.verdict.elapsed_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.verdict.to_dict(),
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "connected": self.connected,
        }
