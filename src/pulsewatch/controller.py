# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Polling controller.

The controller is split in two:

- ``transition(state, event)`` is a synchronous, side-effect-free function from
  the current ``ControllerState`` and one input event to the next state plus a
  tuple of effects.
- ``PollingController`` owns the I/O. It feeds events into ``transition`` and
  carries out the effects against an injectable ``Scheduler`` and ``Prober``.

Every new probe supersedes the one in flight: the older task is cancelled and
its completion is ignored by generation number, so only the latest probe ever
publishes a verdict.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Protocol, Union

from .classifier import checking_verdict, classify, no_connectivity_verdict
from .config import MonitorSettings, load_settings
from .errors import ErrorKind, PulsewatchError
from .models.probe import Failed, ProbeOutcome
from .models.verdict import StatusSnapshot, Verdict
from .probe import Prober

logger = logging.getLogger(__name__)

Sink = Callable[[StatusSnapshot], None]


# Events


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class ConnectivityChanged:
    is_online: bool


@dataclass(frozen=True)
class VisibilityChanged:
    hidden: bool


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class ProbeFinished:
    generation: int
    verdict: Verdict
    finished_at: datetime


Event = Union[Start, Stop, ConnectivityChanged, VisibilityChanged, Tick, Refresh, ProbeFinished]


# Effects


@dataclass(frozen=True)
class Emit:
    snapshot: StatusSnapshot


@dataclass(frozen=True)
class BeginProbe:
    generation: int


@dataclass(frozen=True)
class CancelProbe:
    pass


@dataclass(frozen=True)
class Schedule:
    pass


@dataclass(frozen=True)
class CancelSchedule:
    pass


Effect = Union[Emit, BeginProbe, CancelProbe, Schedule, CancelSchedule]


@dataclass(frozen=True)
class ControllerState:
    running: bool = False
    connected: bool = True
    hidden: bool = False
    scheduled: bool = False
    in_flight: bool = False
    generation: int = 0
    verdict: Verdict = field(default_factory=checking_verdict)
    last_checked: datetime | None = None

    def snapshot(self) -> StatusSnapshot:
        return StatusSnapshot(verdict=self.verdict, last_checked=self.last_checked, connected=self.connected)

    @property
    def can_schedule(self) -> bool:
        return self.running and self.connected and not self.hidden


Transition = tuple[ControllerState, tuple[Effect, ...]]


def _probe_now(state: ControllerState) -> Transition:
    if not state.connected:
        state = replace(state, verdict=no_connectivity_verdict())
        return state, (Emit(state.snapshot()),)
    effects: tuple[Effect, ...] = (CancelProbe(),) if state.in_flight else ()
    state = replace(state, in_flight=True, generation=state.generation + 1, verdict=checking_verdict())
    return state, effects + (Emit(state.snapshot()), BeginProbe(state.generation))


def _probe_and_schedule(state: ControllerState) -> Transition:
    state, effects = _probe_now(state)
    if state.can_schedule:
        return replace(state, scheduled=True), effects + (Schedule(),)
    return replace(state, scheduled=False), effects + (CancelSchedule(),)


def _suspend(state: ControllerState) -> Transition:
    return replace(state, scheduled=False), (CancelSchedule(),)


def transition(state: ControllerState, event: Event) -> Transition:
    """Compute the next state and the effects to carry out for one event."""
    if isinstance(event, Start):
        return _probe_and_schedule(replace(state, running=True))

    if isinstance(event, Stop):
        return _suspend(replace(state, running=False))

    if isinstance(event, ConnectivityChanged):
        if not event.is_online:
            effects: tuple[Effect, ...] = (CancelProbe(),) if state.in_flight else ()
            state = replace(
                state,
                connected=False,
                scheduled=False,
                in_flight=False,
                verdict=no_connectivity_verdict(),
            )
            return state, effects + (CancelSchedule(), Emit(state.snapshot()))
        state = replace(state, connected=True)
        if state.can_schedule:
            return _probe_and_schedule(state)
        return state, ()

    if isinstance(event, VisibilityChanged):
        if event.hidden:
            return _suspend(replace(state, hidden=True))
        state = replace(state, hidden=False)
        if state.can_schedule:
            return _probe_and_schedule(state)
        return state, ()

    if isinstance(event, Tick):
        if state.scheduled and state.can_schedule:
            return _probe_and_schedule(state)
        return replace(state, scheduled=False), ()

    if isinstance(event, Refresh):
        return _probe_now(state)

    if isinstance(event, ProbeFinished):
        if not state.in_flight or event.generation != state.generation:
            return state, ()
        state = replace(state, in_flight=False, verdict=event.verdict, last_checked=event.finished_at)
        return state, (Emit(state.snapshot()),)

    raise TypeError(f"Unsupported controller event: {type(event).__name__}")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_running_loop(event: Event) -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError as exc:
        raise PulsewatchError(
            f"{type(event).__name__} starts a probe and must be delivered from inside a running event loop"
        ) from exc


class PollingController:
    """
    Runs probes on a fixed interval and reacts to connectivity and visibility.

    Methods that can start a probe must be called from inside a running event
    loop; outside one they raise PulsewatchError and leave the state untouched.
    Probe failures are classified and published to ``sink``; they never
    propagate to the caller.
    """

    def __init__(
        self,
        prober: Prober,
        sink: Sink,
        *,
        settings: MonitorSettings | None = None,
        scheduler: Scheduler | None = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or load_settings()
        self._prober = prober
        self._sink = sink
        self._scheduler = scheduler or AsyncioScheduler()
        self._now = now
        self._state = ControllerState()
        self._timer: TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def snapshot(self) -> StatusSnapshot:
        return self._state.snapshot()

    @property
    def has_schedule(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        self._dispatch(Start())

    def stop(self) -> None:
        self._dispatch(Stop())

    def refresh(self) -> None:
        self._dispatch(Refresh())

    def on_connectivity_change(self, is_online: bool) -> None:
        self._dispatch(ConnectivityChanged(bool(is_online)))

    def on_visibility_change(self, hidden: bool) -> None:
        self._dispatch(VisibilityChanged(bool(hidden)))

    async def wait_idle(self) -> None:
        """Wait until the probe in flight (if any) has published its verdict."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def aclose(self) -> None:
        self.stop()
        self._cancel_probe()
        await self._prober.aclose()

    def _dispatch(self, event: Event) -> None:
        previous = self._state
        state, effects = transition(previous, event)
        if any(isinstance(effect, BeginProbe) for effect in effects):
            _require_running_loop(event)
        self._state = state
        logger.debug(
            "%s: %s -> %s (%d effects)",
            type(event).__name__,
            previous.verdict.state.value,
            self._state.verdict.state.value,
            len(effects),
        )
        for effect in effects:
            self._apply(effect)

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, Emit):
            self._publish(effect.snapshot)
        elif isinstance(effect, BeginProbe):
            self._begin_probe(effect.generation)
        elif isinstance(effect, CancelProbe):
            self._cancel_probe()
        elif isinstance(effect, Schedule):
            self._schedule()
        elif isinstance(effect, CancelSchedule):
            self._cancel_schedule()

    def _publish(self, snapshot: StatusSnapshot) -> None:
        try:
            self._sink(snapshot)
        except Exception:  # noqa: BLE001
            logger.exception("Status sink failed for %s", snapshot.verdict.state.value)

    def _schedule(self) -> None:
        self._cancel_schedule()
        self._timer = self._scheduler.call_later(self.settings.check_interval, self._on_timer)

    def _cancel_schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._dispatch(Tick())

    def _begin_probe(self, generation: int) -> None:
        self._cancel_probe()
        self._task = asyncio.get_running_loop().create_task(self._run_probe(generation))

    def _cancel_probe(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run_probe(self, generation: int) -> None:
        outcome: ProbeOutcome
        try:
            outcome = await self._prober.probe()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Prober raised instead of returning an outcome")
            outcome = Failed(ErrorKind.UNKNOWN, str(exc) or type(exc).__name__)
        self._dispatch(ProbeFinished(generation, classify(outcome), self._now()))


async def check_once(prober: Prober) -> Verdict:
    """Run a single probe and classify it."""
    return classify(await prober.probe())


__all__ = [
    "AsyncioScheduler",
    "ConnectivityChanged",
    "ControllerState",
    "PollingController",
    "ProbeFinished",
    "Refresh",
    "Scheduler",
    "Start",
    "Stop",
    "Tick",
    "VisibilityChanged",
    "check_once",
    "transition",
]
