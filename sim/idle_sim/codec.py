"""
IdleCity Simulator - Snapshot Codec
====================================
Freeze a session into a Snapshot and restore it again.

``serialize`` never fails on a well-formed state. ``deserialize`` validates
everything against the catalog and achievement set before building a new
SessionState, and raises MalformedDataError instead of returning a partially
restored state.
"""

import time
from dataclasses import asdict
from typing import Annotated, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from idle_sim.catalog import Catalog
from idle_sim.models import (
    SNAPSHOT_VERSION, Ledger, MalformedDataError, ResourceBoundViolation,
    SessionState, Snapshot, Statistics,
)


# ---------------------------------------------------------------------------
# Persisted layout
# ---------------------------------------------------------------------------

# Whole numbers stay ints so large counts survive a round trip unrounded.
Amount = Union[
    Annotated[StrictInt, Field(ge=0)],
    Annotated[float, Field(ge=0, allow_inf_nan=False)],
]


class LedgerDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    coins: Amount
    population: Amount
    happiness: Amount


class StatisticsDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_clicks: int = Field(ge=0)
    total_coins_earned: Amount
    total_population_gained: Amount
    buildings_purchased: int = Field(ge=0)
    upgrades_purchased: int = Field(ge=0)
    total_ticks: int = Field(ge=0)
    play_seconds: float = Field(ge=0)
    max_population: Amount
    max_happiness: Amount


class SnapshotDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    timestamp: float = Field(ge=0)
    ledger: LedgerDoc
    ownership: Dict[str, Union[StrictBool, int]]
    unlocked: List[str]
    statistics: StatisticsDoc


# ---------------------------------------------------------------------------
# Session <-> Snapshot
# ---------------------------------------------------------------------------

def serialize(state: SessionState, now: Optional[float] = None) -> Snapshot:
    return Snapshot(
        ledger=state.ledger.as_dict(),
        ownership=dict(state.ownership),
        unlocked=tuple(state.unlocked),
        statistics=asdict(state.statistics),
        timestamp=time.time() if now is None else now,
    )


def deserialize(
    snapshot: Snapshot,
    catalog: Catalog,
    achievement_ids: Iterable[str],
    happiness_cap: float = 100.0,
) -> SessionState:
    try:
        data = snapshot_to_dict(snapshot)
    except (AttributeError, TypeError, ValueError) as e:
        raise MalformedDataError(f"snapshot has the wrong shape: {e}") from None
    doc = _validate(data)
    known_achievements = set(achievement_ids)

    if doc.version != SNAPSHOT_VERSION:
        raise MalformedDataError(f"unsupported snapshot version: {doc.version}")

    try:
        ledger = Ledger(
            coins=doc.ledger.coins,
            population=doc.ledger.population,
            happiness=doc.ledger.happiness,
            happiness_cap=happiness_cap,
        )
    except ResourceBoundViolation as e:
        raise MalformedDataError(str(e)) from None

    ownership = catalog.empty_ownership()
    for key, value in doc.ownership.items():
        if key not in catalog:
            raise MalformedDataError(f"unknown catalog entry: {key}")
        entry = catalog.get(key)
        if entry.one_time:
            if not isinstance(value, bool):
                raise MalformedDataError(f"{key} must be true/false, got {value!r}")
        else:
            if isinstance(value, bool) or value < 0:
                raise MalformedDataError(f"{key} must be a non-negative count, got {value!r}")
            if entry.max_level is not None and value > entry.max_level:
                raise MalformedDataError(f"{key} level {value} exceeds max {entry.max_level}")
        ownership[key] = value

    unlocked: List[str] = []
    for achievement_id in doc.unlocked:
        if achievement_id not in known_achievements:
            raise MalformedDataError(f"unknown achievement: {achievement_id}")
        if achievement_id in unlocked:
            raise MalformedDataError(f"duplicate achievement: {achievement_id}")
        unlocked.append(achievement_id)

    return SessionState(
        ledger=ledger,
        ownership=ownership,
        unlocked=unlocked,
        statistics=Statistics(**doc.statistics.model_dump()),
    )


# ---------------------------------------------------------------------------
# Snapshot <-> plain dict (YAML / JSON friendly)
# ---------------------------------------------------------------------------

def snapshot_to_dict(snapshot: Snapshot) -> dict:
    return {
        "version": snapshot.version,
        "timestamp": snapshot.timestamp,
        "ledger": dict(snapshot.ledger),
        "ownership": dict(snapshot.ownership),
        "unlocked": list(snapshot.unlocked),
        "statistics": dict(snapshot.statistics),
    }


def snapshot_from_dict(data) -> Snapshot:
    doc = _validate(data)
    return Snapshot(
        ledger=doc.ledger.model_dump(),
        ownership=dict(doc.ownership),
        unlocked=tuple(doc.unlocked),
        statistics=doc.statistics.model_dump(),
        timestamp=doc.timestamp,
        version=doc.version,
    )


def _validate(data) -> SnapshotDoc:
    if not isinstance(data, dict):
        raise MalformedDataError(f"snapshot must be a mapping, got {type(data).__name__}")
    try:
        return SnapshotDoc.model_validate(data)
    except ValidationError as e:
        raise MalformedDataError(f"invalid snapshot: {e.error_count()} error(s)\n{e}") from None
