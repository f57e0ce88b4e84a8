"""
IdleCity Simulator - Economy Engine
====================================
Generation rates, cost curves, purchase transactions and tick crediting.

Every function here operates on state handed to it; nothing is cached, so
rates and costs are pure functions of ownership and the catalog.
"""

import math
from typing import Dict

from idle_sim.catalog import UPGRADE, Catalog, CatalogEntry, owned_count
from idle_sim.models import (
    RESOURCES, Ledger, Ownership, PurchaseResult, Statistics,
)


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------

def rate_multiplier(resource: str, ownership: Ownership, catalog: Catalog) -> float:
    bonus = 0.0
    for entry in catalog:
        per_level = entry.multipliers.get(resource, 0.0)
        if per_level:
            bonus += owned_count(ownership, entry.key) * per_level
    return 1.0 + bonus


def rate_of(resource: str, ownership: Ownership, catalog: Catalog) -> float:
    """Per-second generation of ``resource`` from everything owned."""
    if resource not in RESOURCES:
        raise KeyError(resource)
    base = 0.0
    for entry in catalog:
        per_unit = entry.effects.get(resource, 0.0)
        if per_unit:
            base += owned_count(ownership, entry.key) * per_unit
    if base == 0.0:
        return 0.0
    return base * rate_multiplier(resource, ownership, catalog)


def rates(ownership: Ownership, catalog: Catalog) -> Dict[str, float]:
    return {r: rate_of(r, ownership, catalog) for r in RESOURCES}


# ---------------------------------------------------------------------------
# Costs
# ---------------------------------------------------------------------------

def _cost_at(entry: CatalogEntry, owned: int) -> Dict[str, float]:
    scale = entry.cost_growth ** owned
    return {r: math.floor(base * scale) for r, base in entry.base_cost.items()}


def cost_of(key: str, ownership: Ownership, catalog: Catalog) -> Dict[str, float]:
    """Price of the next unit: floor(base * growth^owned) per resource."""
    entry = catalog.get(key)
    return _cost_at(entry, owned_count(ownership, key))


def total_cost_spent(key: str, ownership: Ownership, catalog: Catalog) -> Dict[str, float]:
    entry = catalog.get(key)
    totals = {r: 0 for r in entry.base_cost}
    for n in range(owned_count(ownership, key)):
        for r, amount in _cost_at(entry, n).items():
            totals[r] += amount
    return totals


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------

def is_unlocked(key: str, ledger: Ledger, ownership: Ownership, catalog: Catalog) -> bool:
    entry = catalog.get(key)
    for resource, minimum in entry.unlock.items():
        if ledger.get(resource) < minimum:
            return False
    for dep, minimum in entry.requires.items():
        if owned_count(ownership, dep) < minimum:
            return False
    return True


def is_maxed(key: str, ownership: Ownership, catalog: Catalog) -> bool:
    cap = catalog.get(key).level_cap
    return cap is not None and owned_count(ownership, key) >= cap


def can_afford(key: str, ledger: Ledger, ownership: Ownership, catalog: Catalog) -> bool:
    cost = cost_of(key, ownership, catalog)
    return all(ledger.get(r) >= amount for r, amount in cost.items())


def purchase(
    key: str,
    ledger: Ledger,
    ownership: Ownership,
    statistics: Statistics,
    catalog: Catalog,
) -> PurchaseResult:
    """Buy one unit of ``key``.

    All checks run before anything is written, so a rejected purchase leaves
    ledger, ownership and statistics exactly as they were.
    """
    entry = catalog.get(key)

    if not is_unlocked(key, ledger, ownership, catalog):
        return PurchaseResult.LOCKED
    if is_maxed(key, ownership, catalog):
        return PurchaseResult.MAX_LEVEL
    if not can_afford(key, ledger, ownership, catalog):
        return PurchaseResult.INSUFFICIENT_FUNDS

    for resource, amount in cost_of(key, ownership, catalog).items():
        ledger.debit(resource, amount)

    if entry.one_time:
        ownership[key] = True
    else:
        ownership[key] = owned_count(ownership, key) + 1

    if entry.kind == UPGRADE:
        statistics.upgrades_purchased += 1
    else:
        statistics.buildings_purchased += 1
    return PurchaseResult.SUCCESS


# ---------------------------------------------------------------------------
# Tick crediting
# ---------------------------------------------------------------------------

def credit_tick(
    ledger: Ledger,
    ownership: Ownership,
    statistics: Statistics,
    catalog: Catalog,
    elapsed_seconds: float,
):
    if not math.isfinite(elapsed_seconds) or elapsed_seconds < 0:
        raise ValueError(f"elapsed time must be finite and non-negative: {elapsed_seconds}")

    for resource, rate in rates(ownership, catalog).items():
        if rate <= 0 or elapsed_seconds == 0:
            continue
        added = ledger.credit(resource, rate * elapsed_seconds)
        if resource == "coins":
            statistics.total_coins_earned += added
        elif resource == "population":
            statistics.total_population_gained += added

    statistics.total_ticks += 1
    statistics.play_seconds += elapsed_seconds
    statistics.observe(ledger)


def offline_credit(
    ledger: Ledger,
    ownership: Ownership,
    statistics: Statistics,
    catalog: Catalog,
    offline_seconds: float,
    window: float = 86400.0,
) -> float:
    """Catch-up credit for time spent away, with diminishing returns.

    Efficiency falls linearly over the first hour away and never drops below
    10%. Only coins and population are credited and no tick is counted. An
    absence of ``window`` seconds or more earns nothing at all. Returns the
    effective number of seconds credited.
    """
    if not math.isfinite(offline_seconds) or offline_seconds <= 0 or offline_seconds >= window:
        return 0.0
    efficiency = min(1.0, max(0.1, 1.0 - offline_seconds / 3600.0))
    effective = offline_seconds * efficiency
    for resource in ("coins", "population"):
        rate = rate_of(resource, ownership, catalog)
        if rate <= 0:
            continue
        added = ledger.credit(resource, rate * effective)
        if resource == "coins":
            statistics.total_coins_earned += added
        else:
            statistics.total_population_gained += added
    statistics.play_seconds += offline_seconds
    statistics.observe(ledger)
    return effective


# ---------------------------------------------------------------------------
# Manual actions
# ---------------------------------------------------------------------------

def collect_coins(amount: float, ledger: Ledger, statistics: Statistics):
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"amount must be positive: {amount}")
    ledger.credit("coins", amount)
    statistics.total_clicks += 1
    statistics.total_coins_earned += amount


def attract_population(amount: float, ledger: Ledger, statistics: Statistics):
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"amount must be positive: {amount}")
    ledger.credit("population", amount)
    statistics.total_clicks += 1
    statistics.total_population_gained += amount
    statistics.observe(ledger)
