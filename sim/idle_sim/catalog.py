"""
IdleCity Simulator - Catalog
=============================
Static definitions of every purchasable building and upgrade: base cost,
cost growth per owned unit, generation effect and unlock prerequisites.

The default table below is the stock IdleCity city. Alternative catalogs can
be loaded from YAML through ``idle_sim.io.load_catalog``.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from idle_sim.models import RESOURCES, Ownership, UnknownEntryError


BUILDING = "building"
UPGRADE = "upgrade"


# =============================================================================
# ENTRY DEFINITION
# =============================================================================

@dataclass(frozen=True)
class CatalogEntry:
    key: str
    name: str
    kind: str = BUILDING
    description: str = ""
    base_cost: Dict[str, float] = field(default_factory=dict)
    cost_growth: float = 1.0             # cost(n) = base * growth^n
    effects: Dict[str, float] = field(default_factory=dict)      # per unit, per second
    multipliers: Dict[str, float] = field(default_factory=dict)  # +x per level on a resource rate
    unlock: Dict[str, float] = field(default_factory=dict)       # minimum resource levels
    requires: Dict[str, int] = field(default_factory=dict)       # minimum owned counts
    max_level: Optional[int] = None
    one_time: bool = False

    def __post_init__(self):
        if self.kind not in (BUILDING, UPGRADE):
            raise ValueError(f"{self.key}: unknown kind {self.kind!r}")
        if self.cost_growth < 1.0:
            raise ValueError(f"{self.key}: cost_growth must be >= 1.0")
        for table in (self.base_cost, self.effects, self.multipliers, self.unlock):
            for resource, amount in table.items():
                if resource not in RESOURCES:
                    raise ValueError(f"{self.key}: unknown resource {resource!r}")
                if amount < 0:
                    raise ValueError(f"{self.key}: negative value for {resource}")
        if self.max_level is not None and self.max_level <= 0:
            raise ValueError(f"{self.key}: max_level must be positive")
        if self.one_time and self.kind != UPGRADE:
            raise ValueError(f"{self.key}: only upgrades can be one-time")

    @property
    def level_cap(self) -> Optional[int]:
        return 1 if self.one_time else self.max_level


def owned_count(ownership: Ownership, key: str) -> int:
    """Owned units of ``key``; one-time flags count as 0 or 1."""
    return int(ownership.get(key, 0))


# =============================================================================
# CATALOG
# =============================================================================

class Catalog:
    """Ordered, read-only collection of catalog entries."""

    def __init__(self, entries: List[CatalogEntry]):
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.key in self._entries:
                raise ValueError(f"duplicate catalog key: {entry.key}")
            self._entries[entry.key] = entry
        for entry in self._entries.values():
            for dep in entry.requires:
                if dep not in self._entries:
                    raise ValueError(f"{entry.key}: requires unknown entry {dep!r}")

    def get(self, key: str) -> CatalogEntry:
        try:
            return self._entries[key]
        except KeyError:
            raise UnknownEntryError(key) from None

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def buildings(self) -> List[CatalogEntry]:
        return [e for e in self._entries.values() if e.kind == BUILDING]

    def upgrades(self) -> List[CatalogEntry]:
        return [e for e in self._entries.values() if e.kind == UPGRADE]

    def empty_ownership(self) -> Ownership:
        return {e.key: (False if e.one_time else 0) for e in self._entries.values()}


# =============================================================================
# DEFAULT CITY
# =============================================================================
# Happiness starts at its cap and nothing lowers it, so parks and happiness
# rewards only pay off under a config with starting_happiness below the cap
# (see data/config/low_morale.yaml).

_DEFAULT_ENTRIES = [
    # === BUILDINGS ===
    CatalogEntry(
        key="houses",
        name="Houses",
        description="Generate population over time",
        base_cost={"coins": 10},
        cost_growth=1.15,
        effects={"population": 1.0},
    ),
    CatalogEntry(
        key="shops",
        name="Shops",
        description="Generate coins from population",
        base_cost={"coins": 50},
        cost_growth=1.20,
        effects={"coins": 2.0},
        unlock={"population": 10},
    ),
    CatalogEntry(
        key="factories",
        name="Factories",
        description="Advanced coin production",
        base_cost={"coins": 200},
        cost_growth=1.25,
        effects={"coins": 5.0},
        unlock={"population": 50},
    ),
    CatalogEntry(
        key="parks",
        name="Parks",
        description="Raise happiness toward its cap (idle while the city is content)",
        base_cost={"coins": 100},
        cost_growth=1.18,
        effects={"happiness": 10.0},
        unlock={"population": 25},
    ),

    # === UPGRADES ===
    CatalogEntry(
        key="residential_efficiency",
        name="Residential Efficiency",
        kind=UPGRADE,
        description="+10% population growth per level",
        base_cost={"coins": 500},
        cost_growth=2.0,
        multipliers={"population": 0.10},
        requires={"houses": 1},
        max_level=5,
    ),
    CatalogEntry(
        key="commercial_efficiency",
        name="Commercial Efficiency",
        kind=UPGRADE,
        description="+10% coin income per level",
        base_cost={"coins": 1000},
        cost_growth=2.0,
        multipliers={"coins": 0.10},
        requires={"shops": 1},
        max_level=5,
    ),
    CatalogEntry(
        key="city_planning",
        name="City Planning",
        kind=UPGRADE,
        description="Parks are 25% more effective below the happiness cap",
        base_cost={"coins": 2500},
        multipliers={"happiness": 0.25},
        requires={"parks": 1},
        one_time=True,
    ),
]


def default_catalog() -> Catalog:
    return Catalog(list(_DEFAULT_ENTRIES))
