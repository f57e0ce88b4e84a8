"""Tests for the tick scheduler state machine and clock-delta ticking."""

import threading
import time

import pytest

from idle_sim.achievements import AchievementEvaluator
from idle_sim.engine import GameSession
from idle_sim.models import GameConfig
from idle_sim.scheduler import ManualClock, SchedulerState, TickScheduler


def test_starts_stopped(scheduler):
    assert scheduler.state == SchedulerState.STOPPED
    assert not scheduler.is_running
    assert scheduler.pump() == 0.0
    assert scheduler.session.statistics().total_ticks == 0


def test_start_stop_transitions(scheduler):
    scheduler.start()
    assert scheduler.state == SchedulerState.RUNNING
    scheduler.start()  # already running: no-op
    assert scheduler.is_running
    scheduler.stop()
    assert scheduler.state == SchedulerState.STOPPED
    scheduler.stop()
    assert scheduler.state == SchedulerState.STOPPED


def test_pump_credits_clock_delta(scheduler, clock, bare_session):
    bare_session.state.ownership["houses"] = 2
    scheduler.start()

    clock.advance(1.0)
    assert scheduler.pump() == 1.0
    # a stalled host: one late callback covers the whole gap
    clock.advance(3.5)
    assert scheduler.pump() == 3.5

    assert bare_session.ledger()["population"] == pytest.approx(9.0)
    assert bare_session.statistics().total_ticks == 2
    assert bare_session.statistics().play_seconds == pytest.approx(4.5)


def test_no_credit_for_time_while_stopped(scheduler, clock, bare_session):
    bare_session.state.ownership["houses"] = 1
    scheduler.start()
    clock.advance(2.0)
    scheduler.pump()
    scheduler.stop()

    clock.advance(100.0)
    assert scheduler.pump() == 0.0

    scheduler.start()
    clock.advance(1.0)
    scheduler.pump()
    assert bare_session.ledger()["population"] == pytest.approx(3.0)


def test_tick_passes_elapsed_through(scheduler, bare_session):
    bare_session.state.ownership["shops"] = 1
    scheduler.tick(10.0)
    assert bare_session.ledger()["coins"] == pytest.approx(20.0)


def test_interval_must_be_positive(bare_session):
    with pytest.raises(ValueError):
        TickScheduler(bare_session, interval=0, threaded=False)


def test_interval_defaults_to_config(bare_session):
    assert TickScheduler(bare_session, threaded=False).interval == bare_session.config.tick_interval


def test_manual_clock_cannot_go_backwards():
    clock = ManualClock()
    with pytest.raises(ValueError):
        clock.advance(-1)


# ---------------------------------------------------------------------------
# Autosave
# ---------------------------------------------------------------------------

def _autosaving(clock, saves, **config):
    session = GameSession(
        achievements=AchievementEvaluator([]),
        config=GameConfig(**config),
        clock=clock,
    )
    return TickScheduler(session, interval=1.0, clock=clock, threaded=False,
                         on_autosave=saves.append)


def test_autosave_waits_for_min_play(clock):
    saves = []
    scheduler = _autosaving(clock, saves, autosave_interval=10, autosave_min_play=30)
    scheduler.start()
    for _ in range(29):
        clock.advance(1.0)
        scheduler.pump()
    assert saves == []

    clock.advance(1.0)
    scheduler.pump()
    assert len(saves) == 1
    assert saves[0].statistics["play_seconds"] == pytest.approx(30.0)

    for _ in range(10):
        clock.advance(1.0)
        scheduler.pump()
    assert len(saves) == 2


def test_no_autosave_without_hook(scheduler, clock):
    scheduler.start()
    clock.advance(60.0)
    scheduler.pump()
    assert scheduler.on_autosave is None


# ---------------------------------------------------------------------------
# Threaded mode
# ---------------------------------------------------------------------------

def test_threaded_ticker_runs_and_stops(bare_session):
    bare_session.state.ownership["houses"] = 1
    scheduler = TickScheduler(bare_session, interval=0.01)
    scheduler.start()
    deadline = time.monotonic() + 5.0
    while bare_session.statistics().total_ticks < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    scheduler.stop()

    ticks = bare_session.statistics().total_ticks
    assert ticks >= 3
    assert not any(t.name == "idle-sim-ticker" for t in threading.enumerate())

    # nothing lands after stop() returns
    time.sleep(0.05)
    assert bare_session.statistics().total_ticks == ticks
