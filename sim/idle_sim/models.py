"""
IdleCity Simulator - Data Models
=================================
All dataclasses, enums and error types shared by the simulation core.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


RESOURCES = ("coins", "population", "happiness")

SNAPSHOT_VERSION = "1.0"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class MalformedDataError(ValueError):
    """A snapshot (or save file) is corrupt or incompatible with this build."""


class UnknownEntryError(KeyError):
    """No catalog entry with the requested key."""


class ResourceBoundViolation(RuntimeError):
    """Internal invariant breach: a ledger amount would leave its bounds."""


# ---------------------------------------------------------------------------
# Game configuration
# ---------------------------------------------------------------------------

@dataclass
class GameConfig:
    tick_interval: float = 0.1          # wall seconds between scheduler wakeups
    happiness_cap: float = 100.0
    starting_coins: float = 0.0
    starting_population: float = 0.0
    starting_happiness: float = 100.0
    autosave_interval: float = 10.0     # simulated seconds between autosaves
    autosave_min_play: float = 30.0     # no autosave before this much play time
    save_path: str = "saves/idlecity.yaml"
    offline_progress: bool = False      # credit time elapsed since the save on load
    offline_cap_seconds: float = 86400.0  # absences this long or longer earn nothing


# ---------------------------------------------------------------------------
# Resource ledger
# ---------------------------------------------------------------------------

@dataclass
class Ledger:
    coins: float = 0.0
    population: float = 0.0
    happiness: float = 100.0
    happiness_cap: float = field(default=100.0, compare=False, repr=False)

    def __post_init__(self):
        for resource in RESOURCES:
            self._check(resource, getattr(self, resource))

    def _check(self, resource: str, amount: float):
        if resource not in RESOURCES:
            raise KeyError(resource)
        if not math.isfinite(amount):
            raise ResourceBoundViolation(f"{resource} would become non-finite ({amount})")
        if amount < 0:
            raise ResourceBoundViolation(f"{resource} would become negative ({amount})")
        if resource == "happiness" and amount > self.happiness_cap:
            raise ResourceBoundViolation(
                f"happiness {amount} exceeds cap {self.happiness_cap}"
            )

    def get(self, resource: str) -> float:
        if resource not in RESOURCES:
            raise KeyError(resource)
        return getattr(self, resource)

    def set(self, resource: str, amount: float):
        self._check(resource, amount)
        setattr(self, resource, amount)

    def credit(self, resource: str, amount: float) -> float:
        """Add ``amount`` (clamped to the upper bound). Returns what was actually added."""
        if not math.isfinite(amount):
            raise ResourceBoundViolation(f"cannot credit {amount} {resource}")
        before = self.get(resource)
        after = before + amount
        if resource == "happiness":
            after = min(self.happiness_cap, after)
        self.set(resource, after)
        return after - before

    def debit(self, resource: str, amount: float):
        self.set(resource, self.get(resource) - amount)

    def as_dict(self) -> Dict[str, float]:
        return {r: getattr(self, r) for r in RESOURCES}


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass
class Statistics:
    total_clicks: int = 0
    total_coins_earned: float = 0.0
    total_population_gained: float = 0.0
    buildings_purchased: int = 0
    upgrades_purchased: int = 0
    total_ticks: int = 0
    play_seconds: float = 0.0
    max_population: float = 0.0
    max_happiness: float = 0.0

    def observe(self, ledger: Ledger):
        self.max_population = max(self.max_population, ledger.population)
        self.max_happiness = max(self.max_happiness, ledger.happiness)

    def get(self, name: str) -> float:
        if name not in self.__dataclass_fields__:
            raise KeyError(name)
        return getattr(self, name)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

# entry key -> owned count, or bool for one-time upgrades
Ownership = Dict[str, Union[int, bool]]


@dataclass
class SessionState:
    ledger: Ledger = field(default_factory=Ledger)
    ownership: Ownership = field(default_factory=dict)
    unlocked: List[str] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)


@dataclass(frozen=True)
class Snapshot:
    ledger: Dict[str, float]
    ownership: Dict[str, Union[int, bool]]
    unlocked: Tuple[str, ...]
    statistics: Dict[str, float]
    timestamp: float
    version: str = SNAPSHOT_VERSION


# ---------------------------------------------------------------------------
# Results and events
# ---------------------------------------------------------------------------

class PurchaseResult(Enum):
    SUCCESS = "success"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    LOCKED = "locked"
    MAX_LEVEL = "max_level"

    @property
    def ok(self) -> bool:
        return self is PurchaseResult.SUCCESS


@dataclass
class UnlockEvent:
    achievement_id: str
    name: str
    description: str = ""
    reward: Dict[str, float] = field(default_factory=dict)
    play_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Scripted playthroughs
# ---------------------------------------------------------------------------

class ActionType(Enum):
    COLLECT = "collect"
    ATTRACT = "attract"
    BUY = "buy"


@dataclass
class ScriptedAction:
    at: float
    action: ActionType
    target: Optional[str] = None      # catalog key for BUY
    amount: float = 1.0               # per click for COLLECT/ATTRACT
    repeat: int = 1


@dataclass
class Playthrough:
    name: str
    description: str = ""
    duration: float = 600.0
    step: float = 1.0
    actions: List[ScriptedAction] = field(default_factory=list)


@dataclass
class Sample:
    time: float
    coins: float = 0.0
    population: float = 0.0
    happiness: float = 0.0
    coins_rate: float = 0.0
    population_rate: float = 0.0
    happiness_rate: float = 0.0
    owned: Dict[str, Union[int, bool]] = field(default_factory=dict)


@dataclass
class PlaythroughResult:
    name: str = ""
    duration: float = 0.0

    purchase_log: List[Tuple[float, str, Dict[str, float]]] = field(default_factory=list)
    rejected: List[Tuple[float, str, str]] = field(default_factory=list)
    unlock_log: List[UnlockEvent] = field(default_factory=list)
    samples: List[Sample] = field(default_factory=list)

    peak_coins_rate: float = 0.0
    peak_population_rate: float = 0.0
    final_snapshot: Optional[Snapshot] = None
