"""Tests for the step timer registry."""

import asyncio
from uuid import uuid4

from cooking_sessions.domain.timers import PausedTimer, TimerExpired
from cooking_sessions.services.timers import TimerRegistry
from tests.conftest import FakeClock, FakeScheduler


def _registry() -> tuple[TimerRegistry, FakeScheduler]:
    clock = FakeClock()
    scheduler = FakeScheduler(clock)
    return TimerRegistry(scheduler=scheduler, clock=clock), scheduler


def test_schedule_ignores_non_positive_durations() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()

    assert registry.schedule(session_id, 0, 0) is False
    assert registry.schedule(session_id, 0, -5) is False
    assert registry.active_timer(session_id) is None
    assert scheduler.handles == []


def test_expiry_publishes_event_and_removes_entry() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()
    registry.schedule(session_id, 3, 1500)

    scheduler.advance(1.4)
    assert registry.events.empty()

    scheduler.advance(0.1)

    assert registry.events.get_nowait() == TimerExpired(session_id, 3)
    assert registry.active_timer(session_id) is None


def test_remaining_ms_counts_down_and_floors_at_zero() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()
    registry.schedule(session_id, 0, 2000)
    start = scheduler.clock.now

    scheduler.clock.advance(0.75)

    assert registry.remaining_ms(session_id) == 1250
    assert registry.remaining_ms(session_id, start) == 2000
    assert registry.remaining_ms(uuid4()) == 0
    timer = registry.active_timer(session_id)
    scheduler.clock.advance(10)
    assert timer.remaining_ms(scheduler.clock.now) == 0


def test_rescheduling_replaces_pending_callback() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()
    registry.schedule(session_id, 0, 1000)
    registry.schedule(session_id, 1, 5000)

    assert scheduler.handles[0].cancelled
    scheduler.advance(1)
    assert registry.events.empty()

    scheduler.advance(4)
    assert registry.events.get_nowait() == TimerExpired(session_id, 1)


def test_pause_moves_timer_into_snapshot() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()
    registry.schedule(session_id, 0, 2000)

    scheduler.advance(0.5)
    snapshot = registry.pause(session_id)

    assert snapshot == PausedTimer(session_id, scheduler.clock.now, 1500)
    assert registry.active_timer(session_id) is None
    assert registry.paused_timer(session_id) == snapshot
    assert registry.take_snapshot(session_id) == snapshot
    assert registry.paused_timer(session_id) is None
    assert registry.pause(session_id) is None


def test_schedule_drops_leftover_snapshot() -> None:
    registry, _ = _registry()
    session_id = uuid4()
    registry.schedule(session_id, 0, 2000)
    registry.pause(session_id)

    registry.schedule(session_id, 1, 3000)

    assert registry.paused_timer(session_id) is None
    assert registry.active_timer(session_id).step_index == 1


def test_cancel_is_safe_without_entries() -> None:
    registry, scheduler = _registry()
    session_id = uuid4()

    registry.cancel(session_id)
    registry.schedule(session_id, 0, 1000)
    registry.cancel(session_id)

    assert scheduler.handles[0].cancelled
    scheduler.advance(2)
    assert registry.events.empty()


def test_cancel_all_clears_both_maps() -> None:
    registry, scheduler = _registry()
    running, paused = uuid4(), uuid4()
    registry.schedule(running, 0, 1000)
    registry.schedule(paused, 0, 1000)
    registry.pause(paused)

    registry.cancel_all()

    assert registry.active_timer(running) is None
    assert registry.paused_timer(paused) is None
    assert scheduler.pending == []


def test_asyncio_scheduler_fires_on_event_loop() -> None:
    async def run() -> TimerExpired:
        registry = TimerRegistry()
        session_id = uuid4()
        registry.schedule(session_id, 2, 10)
        event = await asyncio.wait_for(registry.events.get(), timeout=1)
        assert event.session_id == session_id
        return event

    event = asyncio.run(run())

    assert event.step_index == 2
