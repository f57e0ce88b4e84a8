"""
IdleCity Simulator - Tick Scheduler
====================================
Advances simulated time for a GameSession.

The scheduler is a two-state machine (STOPPED / RUNNING). Each tick credits
the real clock delta since the previous tick, not a fixed step, so jitter or
a stalled host only changes how much time one tick covers.

Production runs use a daemon timer thread; tests and headless runs pass
``threaded=False`` with a ManualClock and call ``pump()`` themselves.
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional

from idle_sim.models import Snapshot


class SchedulerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ManualClock:
    """Settable clock for deterministic ticking."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        if seconds < 0:
            raise ValueError("clock cannot go backwards")
        self.now += seconds


class TickScheduler:
    def __init__(
        self,
        session,
        interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        threaded: bool = True,
        on_autosave: Optional[Callable[[Snapshot], None]] = None,
    ):
        self.session = session
        self.interval = interval if interval is not None else session.config.tick_interval
        if self.interval <= 0:
            raise ValueError("tick interval must be positive")
        self.clock = clock
        self.threaded = threaded
        self.on_autosave = on_autosave

        self._state = SchedulerState.STOPPED
        self._last_tick: Optional[float] = None
        self._since_autosave = 0.0
        self._wakeup = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    def start(self):
        with self.session.lock:
            if self._state == SchedulerState.RUNNING:
                return
            self._state = SchedulerState.RUNNING
            self._last_tick = self.clock()
            self._wakeup.clear()
            if self.threaded:
                self._thread = threading.Thread(
                    target=self._run, name="idle-sim-ticker", daemon=True,
                )
                self._thread.start()

    def stop(self):
        with self.session.lock:
            if self._state == SchedulerState.STOPPED:
                return
            self._state = SchedulerState.STOPPED
            self._last_tick = None
            self._wakeup.set()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self.interval * 5))

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def _run(self):
        while not self._wakeup.wait(self.interval):
            self.pump()

    def pump(self) -> float:
        """One timer callback. Returns the elapsed seconds credited (0 when stopped)."""
        with self.session.lock:
            if self._state != SchedulerState.RUNNING:
                return 0.0
            now = self.clock()
            elapsed = max(0.0, now - self._last_tick)
            self._last_tick = now
            self.tick(elapsed)
            return elapsed

    def tick(self, elapsed: float):
        with self.session.lock:
            self.session.tick(elapsed)
            self._maybe_autosave(elapsed)

    def _maybe_autosave(self, elapsed: float):
        if self.on_autosave is None:
            return
        cfg = self.session.config
        self._since_autosave += elapsed
        if self._since_autosave < cfg.autosave_interval:
            return
        if self.session.statistics().play_seconds < cfg.autosave_min_play:
            return
        self._since_autosave = 0.0
        self.on_autosave(self.session.save())
