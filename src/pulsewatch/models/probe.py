# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe outcome models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

from ..errors import ErrorKind


def _freeze_headers(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType({str(k).lower(): str(v) for k, v in (headers or {}).items()})


@dataclass(frozen=True)
class Responded:
    """The target answered with some HTTP status."""

    status_code: int
    status_text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body_text: str = ""
    elapsed_ms: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    @property
    def healthy_status(self) -> bool:
        return 200 <= self.status_code < 400


@dataclass(frozen=True)
class Failed:
    """No usable response arrived."""

    error_kind: ErrorKind
    message: str = ""
    elapsed_ms: int | None = None


ProbeOutcome = Union[Responded, Failed]

__all__ = ["Failed", "ProbeOutcome", "Responded"]
