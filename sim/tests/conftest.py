"""Shared test fixtures for the IdleCity simulator test suite."""

import sys
from pathlib import Path

import pytest

# Ensure sim/ is on the path so `idle_sim` imports work
SIM_ROOT = Path(__file__).parent.parent
if str(SIM_ROOT) not in sys.path:
    sys.path.insert(0, str(SIM_ROOT))

from idle_sim.achievements import AchievementEvaluator
from idle_sim.catalog import default_catalog
from idle_sim.engine import GameSession
from idle_sim.models import (
    ActionType, Ledger, Playthrough, ScriptedAction, SessionState,
)
from idle_sim.scheduler import ManualClock, TickScheduler


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def state(catalog):
    """Fresh state: no coins, no citizens, full happiness, nothing owned."""
    return SessionState(ledger=Ledger(), ownership=catalog.empty_ownership())


@pytest.fixture
def clock():
    return ManualClock(1000.0)


@pytest.fixture
def session(clock):
    """Session with the stock achievement set (rewards included)."""
    return GameSession(clock=clock)


@pytest.fixture
def bare_session(clock):
    """Session without achievements, so ledger arithmetic is exact."""
    return GameSession(achievements=AchievementEvaluator([]), clock=clock)


@pytest.fixture
def scheduler(bare_session, clock):
    """Manually pumped scheduler ticking bare_session once per simulated second."""
    return TickScheduler(bare_session, interval=1.0, clock=clock, threaded=False)


@pytest.fixture
def starter_playthrough():
    """Ten clicks, first house, then coast."""
    return Playthrough(
        name="Test Starter",
        duration=120,
        step=1.0,
        actions=[
            ScriptedAction(at=0, action=ActionType.COLLECT, amount=1, repeat=10),
            ScriptedAction(at=0, action=ActionType.BUY, target="houses"),
            ScriptedAction(at=0, action=ActionType.BUY, target="shops"),
            ScriptedAction(at=60, action=ActionType.BUY, target="houses", repeat=2),
            ScriptedAction(at=90, action=ActionType.BUY, target="factories"),
        ],
    )
