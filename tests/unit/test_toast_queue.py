"""Badge toast queue: phase timings and newest-wins replacement."""

from __future__ import annotations

import asyncio

import pytest

from klio.notifications.toast_queue import (
    BadgeToastEvent,
    NotificationQueue,
    SchedulerUnavailableError,
    ToastPhase,
)

FIRST = BadgeToastEvent("first_page", "First Page", "📖")
STREAK = BadgeToastEvent("streak_3", "Warming Up", "🔥")


@pytest.fixture
def queue(scheduler) -> NotificationQueue:
    return NotificationQueue(
        enter_delay=0.05,
        visible_duration=3.95,
        exit_duration=0.5,
        scheduler=scheduler,
    )


class TestLifecycle:
    def test_starts_empty(self, queue):
        assert queue.phase is ToastPhase.EMPTY
        assert queue.current is None

    def test_push_goes_pending_first(self, queue):
        queue.push(FIRST)
        assert queue.phase is ToastPhase.PENDING
        assert queue.current == FIRST
        assert not queue.state.is_visible

    def test_full_schedule(self, queue, scheduler):
        queue.push(FIRST)

        scheduler.advance(0.049)
        assert queue.phase is ToastPhase.PENDING

        scheduler.advance(0.001)
        assert queue.phase is ToastPhase.VISIBLE
        assert queue.state.is_visible

        scheduler.advance(3.949)
        assert queue.phase is ToastPhase.VISIBLE

        scheduler.advance(0.001)
        assert queue.phase is ToastPhase.DISMISSING
        assert queue.current == FIRST

        scheduler.advance(0.5)
        assert queue.phase is ToastPhase.EMPTY
        assert queue.current is None
        assert scheduler.pending == []

    def test_listeners_see_every_phase(self, queue, scheduler):
        phases: list[ToastPhase] = []
        queue.subscribe(lambda snap: phases.append(snap.phase))
        queue.push(FIRST)
        scheduler.advance(10)
        assert phases == [
            ToastPhase.PENDING,
            ToastPhase.VISIBLE,
            ToastPhase.DISMISSING,
            ToastPhase.EMPTY,
        ]


class TestReplacement:
    def test_push_while_visible_replaces(self, queue, scheduler):
        queue.push(FIRST)
        scheduler.advance(1.0)
        assert queue.phase is ToastPhase.VISIBLE

        queue.push(STREAK)
        assert queue.phase is ToastPhase.PENDING
        assert queue.current == STREAK

        scheduler.advance(0.05)
        assert queue.phase is ToastPhase.VISIBLE
        assert queue.current == STREAK

    def test_superseded_timers_are_cancelled(self, queue, scheduler):
        queue.push(FIRST)
        scheduler.advance(1.0)
        first_dismiss = scheduler.pending[0]

        queue.push(STREAK)
        assert first_dismiss.cancelled
        assert len(scheduler.pending) == 1

    def test_replaced_event_never_reappears(self, queue, scheduler):
        seen: list[BadgeToastEvent | None] = []
        queue.push(FIRST)
        scheduler.advance(3.0)
        queue.subscribe(lambda snap: seen.append(snap.event))

        queue.push(STREAK)
        scheduler.advance(10)

        assert FIRST not in seen
        assert queue.phase is ToastPhase.EMPTY

    def test_replacement_restarts_visible_window(self, queue, scheduler):
        """The second event gets its full on-screen time, not the remainder of the first."""
        queue.push(FIRST)
        scheduler.advance(3.9)
        queue.push(STREAK)
        scheduler.advance(0.05 + 3.9)
        assert queue.phase is ToastPhase.VISIBLE
        assert queue.current == STREAK

    def test_push_while_dismissing(self, queue, scheduler):
        queue.push(FIRST)
        scheduler.advance(4.2)
        assert queue.phase is ToastPhase.DISMISSING

        queue.push(STREAK)
        scheduler.advance(0.5)
        assert queue.phase is ToastPhase.VISIBLE
        assert queue.current == STREAK

    def test_rapid_pushes_keep_only_newest(self, queue, scheduler):
        queue.push(FIRST)
        queue.push(STREAK)
        queue.push(FIRST)
        assert len(scheduler.pending) == 1
        scheduler.advance(0.05)
        assert queue.current == FIRST


class TestClose:
    def test_close_cancels_and_empties(self, queue, scheduler):
        queue.push(FIRST)
        scheduler.advance(1.0)
        queue.close()
        assert queue.phase is ToastPhase.EMPTY
        assert scheduler.pending == []

    def test_close_when_empty_does_not_notify(self, queue):
        calls = []
        queue.subscribe(calls.append)
        queue.close()
        assert calls == []


class TestValidation:
    @pytest.mark.parametrize(
        "enter,visible,exit_",
        [
            (0, 3.95, 0.5),
            (4.0, 3.95, 0.5),
            (0.05, 3.95, 4.0),
            (0.05, 3.95, -0.1),
        ],
    )
    def test_rejects_inconsistent_durations(self, enter, visible, exit_):
        with pytest.raises(ValueError):
            NotificationQueue(enter_delay=enter, visible_duration=visible, exit_duration=exit_)


class TestEventLoopScheduling:
    def test_push_without_loop_leaves_slot_untouched(self):
        queue = NotificationQueue()
        seen = []
        queue.subscribe(seen.append)

        with pytest.raises(SchedulerUnavailableError):
            queue.push(FIRST)

        assert queue.phase is ToastPhase.EMPTY
        assert queue.current is None
        assert seen == []

    @pytest.mark.asyncio
    async def test_runs_on_the_running_loop(self):
        queue = NotificationQueue(enter_delay=0.02, visible_duration=0.3, exit_duration=0.02)
        queue.push(FIRST)
        assert queue.phase is ToastPhase.PENDING

        await asyncio.sleep(0.1)
        assert queue.phase is ToastPhase.VISIBLE

        await asyncio.sleep(0.5)
        assert queue.phase is ToastPhase.EMPTY
