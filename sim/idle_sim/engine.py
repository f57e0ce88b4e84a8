"""
IdleCity Simulator - Game Session
==================================
The single mutation path over ledger, ownership, statistics and unlocked
achievements, plus a headless runner for scripted playthroughs.
"""

import threading
import time
from copy import deepcopy
from typing import Callable, Dict, List, Optional

from idle_sim import economy
from idle_sim.achievements import AchievementEvaluator
from idle_sim.catalog import Catalog, default_catalog, owned_count
from idle_sim.codec import deserialize, serialize
from idle_sim.models import (
    ActionType, GameConfig, Ledger, Playthrough, PlaythroughResult,
    PurchaseResult, Sample, SessionState, Snapshot, Statistics, UnlockEvent,
)

# Simulated seconds between recorded samples in a playthrough
SAMPLE_EVERY = 30.0


class GameSession:
    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        achievements: Optional[AchievementEvaluator] = None,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.achievements = achievements if achievements is not None else AchievementEvaluator()
        self.config = config or GameConfig()
        self.clock = clock
        self.lock = threading.RLock()
        self.state = self._fresh_state()

        self._subscribers: List[Callable[[UnlockEvent], None]] = []
        self._pending: List[UnlockEvent] = []

    def _fresh_state(self) -> SessionState:
        cfg = self.config
        return SessionState(
            ledger=Ledger(
                coins=cfg.starting_coins,
                population=cfg.starting_population,
                happiness=cfg.starting_happiness,
                happiness_cap=cfg.happiness_cap,
            ),
            ownership=self.catalog.empty_ownership(),
        )

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def ledger(self) -> Dict[str, float]:
        with self.lock:
            return self.state.ledger.as_dict()

    def rates(self) -> Dict[str, float]:
        with self.lock:
            return economy.rates(self.state.ownership, self.catalog)

    def rate_of(self, resource: str) -> float:
        with self.lock:
            return economy.rate_of(resource, self.state.ownership, self.catalog)

    def ownership(self) -> Dict[str, object]:
        with self.lock:
            return dict(self.state.ownership)

    def owned(self, key: str) -> int:
        self.catalog.get(key)
        with self.lock:
            return owned_count(self.state.ownership, key)

    def unlocked(self) -> List[str]:
        with self.lock:
            return list(self.state.unlocked)

    def statistics(self) -> Statistics:
        with self.lock:
            return deepcopy(self.state.statistics)

    def cost_of(self, key: str) -> Dict[str, float]:
        with self.lock:
            return economy.cost_of(key, self.state.ownership, self.catalog)

    def is_unlocked(self, key: str) -> bool:
        with self.lock:
            return economy.is_unlocked(key, self.state.ledger, self.state.ownership, self.catalog)

    def can_afford(self, key: str) -> bool:
        with self.lock:
            return economy.can_afford(key, self.state.ledger, self.state.ownership, self.catalog)

    def is_maxed(self, key: str) -> bool:
        with self.lock:
            return economy.is_maxed(key, self.state.ownership, self.catalog)

    def achievement_summary(self) -> dict:
        with self.lock:
            return self.achievements.summary(self.state)

    def achievement_progress(self) -> Dict[str, float]:
        with self.lock:
            return self.achievements.progress(self.state)

    # ------------------------------------------------------------------
    # Unlock notifications
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[UnlockEvent], None]):
        self._subscribers.append(callback)

    def drain_events(self) -> List[UnlockEvent]:
        with self.lock:
            events, self._pending = self._pending, []
            return events

    def _evaluate(self) -> List[UnlockEvent]:
        events = self.achievements.evaluate(self.state)
        self._pending.extend(events)
        for event in events:
            for callback in self._subscribers:
                callback(event)
        return events

    # ------------------------------------------------------------------
    # Write entry points
    # ------------------------------------------------------------------

    def collect_coins(self, amount: float = 1) -> List[UnlockEvent]:
        with self.lock:
            economy.collect_coins(amount, self.state.ledger, self.state.statistics)
            return self._evaluate()

    def attract_population(self, amount: float = 1) -> List[UnlockEvent]:
        with self.lock:
            economy.attract_population(amount, self.state.ledger, self.state.statistics)
            return self._evaluate()

    def purchase(self, key: str) -> PurchaseResult:
        with self.lock:
            s = self.state
            result = economy.purchase(key, s.ledger, s.ownership, s.statistics, self.catalog)
            if result.ok:
                self._evaluate()
            return result

    def tick(self, elapsed: float) -> List[UnlockEvent]:
        with self.lock:
            s = self.state
            economy.credit_tick(s.ledger, s.ownership, s.statistics, self.catalog, elapsed)
            return self._evaluate()

    def save(self) -> Snapshot:
        with self.lock:
            return serialize(self.state, now=self.clock())

    def load(self, snapshot: Snapshot) -> float:
        """Replace the whole session with ``snapshot``.

        Raises MalformedDataError (leaving the live state untouched) when the
        snapshot does not fit this catalog and achievement set. Returns the
        offline seconds credited, which is 0 unless offline progress is on.
        """
        restored = deserialize(
            snapshot, self.catalog, self.achievements.ids(), self.config.happiness_cap,
        )
        with self.lock:
            self.state = restored
            self._pending = []
            credited = 0.0
            if self.config.offline_progress:
                credited = economy.offline_credit(
                    restored.ledger, restored.ownership, restored.statistics,
                    self.catalog, self.clock() - snapshot.timestamp,
                    window=self.config.offline_cap_seconds,
                )
                self._evaluate()
            return credited

    def reset(self):
        with self.lock:
            self.state = self._fresh_state()
            self._pending = []


# ---------------------------------------------------------------------------
# Scripted playthroughs
# ---------------------------------------------------------------------------

def run_playthrough(
    playthrough: Playthrough,
    catalog: Optional[Catalog] = None,
    achievements: Optional[AchievementEvaluator] = None,
    config: Optional[GameConfig] = None,
    duration: Optional[float] = None,
) -> PlaythroughResult:
    """Drive a fresh session through ``playthrough`` on a simulated clock.

    Raises ValueError before anything runs if a buy action names an entry
    missing from the catalog.
    """
    from idle_sim.scheduler import ManualClock, TickScheduler

    clock = ManualClock()
    session = GameSession(catalog, achievements, config, clock=clock)
    unknown = sorted({
        a.target for a in playthrough.actions
        if a.action == ActionType.BUY and a.target not in session.catalog
    })
    if unknown:
        raise ValueError(
            f"playthrough {playthrough.name!r} buys unknown entries: {', '.join(unknown)}"
        )
    scheduler = TickScheduler(session, interval=playthrough.step, clock=clock, threaded=False)

    total = duration if duration is not None else playthrough.duration
    result = PlaythroughResult(name=playthrough.name, duration=total)
    session.subscribe(result.unlock_log.append)

    queue = sorted(playthrough.actions, key=lambda a: a.at)
    next_action = 0
    next_sample = 0.0

    scheduler.start()
    while True:
        now = clock()
        while next_action < len(queue) and queue[next_action].at <= now:
            _apply_action(session, queue[next_action], now, result)
            next_action += 1

        if now >= next_sample:
            result.samples.append(_sample(session, now))
            next_sample += SAMPLE_EVERY

        rates = session.rates()
        result.peak_coins_rate = max(result.peak_coins_rate, rates["coins"])
        result.peak_population_rate = max(result.peak_population_rate, rates["population"])

        if now >= total:
            break
        clock.advance(min(playthrough.step, total - now))
        scheduler.pump()
    scheduler.stop()

    if result.samples[-1].time < clock():
        result.samples.append(_sample(session, clock()))
    result.final_snapshot = session.save()
    return result


def _apply_action(session: GameSession, action, now: float, result: PlaythroughResult):
    for _ in range(max(1, action.repeat)):
        if action.action == ActionType.COLLECT:
            session.collect_coins(action.amount)
        elif action.action == ActionType.ATTRACT:
            session.attract_population(action.amount)
        elif action.action == ActionType.BUY:
            cost = session.cost_of(action.target)
            outcome = session.purchase(action.target)
            if outcome.ok:
                result.purchase_log.append((now, action.target, cost))
            else:
                result.rejected.append((now, action.target, outcome.value))


def _sample(session: GameSession, now: float) -> Sample:
    ledger = session.ledger()
    rates = session.rates()
    return Sample(
        time=now,
        coins=ledger["coins"],
        population=ledger["population"],
        happiness=ledger["happiness"],
        coins_rate=rates["coins"],
        population_rate=rates["population"],
        happiness_rate=rates["happiness"],
        owned=session.ownership(),
    )
