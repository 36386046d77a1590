"""Single-slot, time-boxed badge toast queue.

Lifecycle of one toast::

    EMPTY --push--> PENDING --enter delay--> VISIBLE --visible time--> DISMISSING --exit time--> EMPTY

A push in any non-empty phase replaces the held event and restarts the
schedule from PENDING. Every timer carries the ticket of the push that
scheduled it and is cancelled when that push is superseded, so a stale timer
can never show or clear a newer event.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from klio.state import StateContainer

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with ``asyncio.AbstractEventLoop.call_later`` semantics."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class SchedulerUnavailableError(RuntimeError):
    """No scheduler was injected and no event loop is running."""


class ToastPhase(str, Enum):
    EMPTY = "empty"
    PENDING = "pending"
    VISIBLE = "visible"
    DISMISSING = "dismissing"


@dataclass(frozen=True)
class BadgeToastEvent:
    badge_id: str
    display_name: str
    emoji: str


@dataclass(frozen=True)
class ToastSnapshot:
    phase: ToastPhase
    event: BadgeToastEvent | None = None

    @property
    def is_visible(self) -> bool:
        return self.phase is ToastPhase.VISIBLE


_EMPTY = ToastSnapshot(ToastPhase.EMPTY)


class _Ticket:
    """Identity of one push. Compared by ``is`` only."""

    __slots__ = ("event",)

    def __init__(self, event: BadgeToastEvent) -> None:
        self.event = event


class NotificationQueue(StateContainer[ToastSnapshot]):
    """Newest-wins toast slot with cancellable per-event timers."""

    def __init__(
        self,
        enter_delay: float = 0.05,
        visible_duration: float = 3.95,
        exit_duration: float = 0.5,
        scheduler: Scheduler | None = None,
    ) -> None:
        if not 0 < enter_delay < visible_duration:
            msg = "enter_delay must be positive and shorter than visible_duration"
            raise ValueError(msg)
        if not 0 <= exit_duration < visible_duration:
            msg = "exit_duration must be shorter than visible_duration"
            raise ValueError(msg)
        super().__init__(_EMPTY)
        self.enter_delay = enter_delay
        self.visible_duration = visible_duration
        self.exit_duration = exit_duration
        self._scheduler = scheduler
        self._ticket: _Ticket | None = None
        self._timer: TimerHandle | None = None

    @property
    def phase(self) -> ToastPhase:
        return self.state.phase

    @property
    def current(self) -> BadgeToastEvent | None:
        return self.state.event

    def _get_scheduler(self) -> Scheduler:
        if self._scheduler is not None:
            return self._scheduler
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            msg = "toast timers need a running event loop or an injected scheduler"
            raise SchedulerUnavailableError(msg) from exc

    def _schedule(self, delay: float, step: Callable[[_Ticket], None], ticket: _Ticket) -> None:
        self._timer = self._get_scheduler().call_later(delay, step, ticket)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def push(self, event: BadgeToastEvent) -> None:
        """Hold ``event``, replacing anything pending or on screen, and restart the schedule.

        Raises ``SchedulerUnavailableError`` before touching any state when
        there is nothing to run the timers on.
        """
        scheduler = self._get_scheduler()
        self._cancel_timer()
        superseded = self.state.event
        ticket = _Ticket(event)
        self._ticket = ticket
        if superseded is not None:
            logger.debug("Badge toast %s superseded by %s", superseded.badge_id, event.badge_id)
        self._timer = scheduler.call_later(self.enter_delay, self._show, ticket)
        self._replace(ToastSnapshot(ToastPhase.PENDING, event))

    def _show(self, ticket: _Ticket) -> None:
        if ticket is not self._ticket:
            return
        self._replace(ToastSnapshot(ToastPhase.VISIBLE, ticket.event))
        self._schedule(self.visible_duration, self._dismiss, ticket)

    def _dismiss(self, ticket: _Ticket) -> None:
        if ticket is not self._ticket:
            return
        self._replace(ToastSnapshot(ToastPhase.DISMISSING, ticket.event))
        self._schedule(self.exit_duration, self._clear, ticket)

    def _clear(self, ticket: _Ticket) -> None:
        if ticket is not self._ticket:
            return
        self._timer = None
        self._ticket = None
        self._replace(_EMPTY)

    def close(self) -> None:
        """Cancel pending timers and empty the slot."""
        self._cancel_timer()
        self._ticket = None
        if self.state.phase is not ToastPhase.EMPTY:
            self._replace(_EMPTY)
