"""
IdleCity Simulator - Achievements
==================================
Typed threshold predicates over ledger, ownership and statistics, plus the
evaluator that unlocks each achievement exactly once and pays its reward.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from idle_sim.catalog import owned_count
from idle_sim.models import RESOURCES, SessionState, Statistics, UnlockEvent


# ---------------------------------------------------------------------------
# Predicate types
# ---------------------------------------------------------------------------

class PredicateType(Enum):
    RESOURCE_AT_LEAST = "resource"      # ledger[target] >= threshold
    OWNED_AT_LEAST = "owned"            # ownership[target] >= threshold
    STATISTIC_AT_LEAST = "statistic"    # statistics.target >= threshold
    ALL_OF = "all_of"                   # every child holds


@dataclass(frozen=True)
class Predicate:
    predicate_type: PredicateType
    target: Optional[str] = None
    threshold: float = 0.0
    children: Tuple["Predicate", ...] = ()


def resource_at_least(resource: str, threshold: float) -> Predicate:
    return Predicate(PredicateType.RESOURCE_AT_LEAST, resource, threshold)


def owned_at_least(key: str, threshold: int) -> Predicate:
    return Predicate(PredicateType.OWNED_AT_LEAST, key, threshold)


def statistic_at_least(name: str, threshold: float) -> Predicate:
    return Predicate(PredicateType.STATISTIC_AT_LEAST, name, threshold)


def all_of(*children: Predicate) -> Predicate:
    return Predicate(PredicateType.ALL_OF, children=tuple(children))


# ---------------------------------------------------------------------------
# Predicate evaluation
# ---------------------------------------------------------------------------

def _measure(predicate: Predicate, state: SessionState) -> float:
    pt = predicate.predicate_type
    if pt == PredicateType.RESOURCE_AT_LEAST:
        return state.ledger.get(predicate.target)
    elif pt == PredicateType.OWNED_AT_LEAST:
        return owned_count(state.ownership, predicate.target)
    elif pt == PredicateType.STATISTIC_AT_LEAST:
        return state.statistics.get(predicate.target)
    raise ValueError(f"{pt} has no single measure")


def evaluate_predicate(predicate: Predicate, state: SessionState) -> bool:
    if predicate.predicate_type == PredicateType.ALL_OF:
        return all(evaluate_predicate(c, state) for c in predicate.children)
    return _measure(predicate, state) >= predicate.threshold


def predicate_progress(predicate: Predicate, state: SessionState) -> float:
    """Fraction of the way to satisfying ``predicate`` (0.0 - 1.0)."""
    if predicate.predicate_type == PredicateType.ALL_OF:
        if not predicate.children:
            return 1.0
        return min(predicate_progress(c, state) for c in predicate.children)
    if predicate.threshold <= 0:
        return 1.0
    return min(1.0, _measure(predicate, state) / predicate.threshold)


def describe_predicate(predicate: Predicate) -> str:
    pt = predicate.predicate_type
    if pt == PredicateType.ALL_OF:
        return " and ".join(describe_predicate(c) for c in predicate.children)
    threshold = predicate.threshold
    if float(threshold).is_integer():
        threshold = int(threshold)
    if pt == PredicateType.OWNED_AT_LEAST:
        return f"own {threshold} {predicate.target}"
    return f"{predicate.target} >= {threshold}"


# ---------------------------------------------------------------------------
# Achievement definitions
# ---------------------------------------------------------------------------

@dataclass
class AchievementDefinition:
    id: str
    name: str
    predicate: Predicate
    description: str = ""
    category: str = "general"
    reward: Dict[str, float] = field(default_factory=dict)


def _a(id, name, description, category, predicate, **reward) -> AchievementDefinition:
    return AchievementDefinition(
        id=id, name=name, description=description, category=category,
        predicate=predicate, reward=dict(reward),
    )


def default_achievements() -> List[AchievementDefinition]:
    every_building = all_of(*(owned_at_least(k, 1) for k in ("houses", "shops", "factories", "parks")))
    every_upgrade = all_of(*(owned_at_least(k, 1) for k in (
        "residential_efficiency", "commercial_efficiency", "city_planning")))
    return [
        # Clicking
        _a("firstClick", "First Steps", "Make your first click", "clicking",
           statistic_at_least("total_clicks", 1), coins=10),
        _a("clickMaster", "Click Master", "Make 100 clicks", "clicking",
           statistic_at_least("total_clicks", 100), coins=100),
        _a("clickLegend", "Click Legend", "Make 1,000 clicks", "clicking",
           statistic_at_least("total_clicks", 1000), coins=1000, happiness=10),
        # Building
        _a("firstHouse", "Home Builder", "Build your first house", "building",
           owned_at_least("houses", 1), coins=50),
        _a("cityPlanner", "City Planner", "Build 10 total buildings", "building",
           statistic_at_least("buildings_purchased", 10), coins=500),
        _a("metropolis", "Metropolis", "Build 100 total buildings", "building",
           statistic_at_least("buildings_purchased", 100), coins=5000, happiness=20),
        # Population
        _a("firstCitizen", "First Citizens", "Reach 10 population", "population",
           resource_at_least("population", 10), coins=25),
        _a("smallTown", "Small Town", "Reach 100 population", "population",
           resource_at_least("population", 100), coins=250, happiness=5),
        _a("bigCity", "Big City", "Reach 1,000 population", "population",
           resource_at_least("population", 1000), coins=2500, happiness=15),
        # Wealth
        _a("firstCoins", "Pocket Change", "Earn 100 coins in total", "wealth",
           statistic_at_least("total_coins_earned", 100), happiness=5),
        _a("wealthy", "Wealthy", "Earn 10,000 coins in total", "wealth",
           statistic_at_least("total_coins_earned", 10000), happiness=10),
        _a("millionaire", "Millionaire", "Earn 1,000,000 coins in total", "wealth",
           statistic_at_least("total_coins_earned", 1000000), happiness=50),
        # Happiness
        _a("happyCity", "Happy City", "Full happiness with 50 citizens", "happiness",
           all_of(resource_at_least("happiness", 100), resource_at_least("population", 50)),
           coins=1000),
        _a("utopia", "Utopia", "Full happiness with 500 citizens", "happiness",
           all_of(resource_at_least("happiness", 100), resource_at_least("population", 500)),
           coins=10000, happiness=25),
        # Time
        _a("dedicated", "Dedicated", "Play for 30 minutes", "time",
           statistic_at_least("play_seconds", 1800), coins=500),
        _a("marathoner", "Marathoner", "Play for 2 hours", "time",
           statistic_at_least("play_seconds", 7200), coins=2000, happiness=15),
        # Special
        _a("efficiency", "Efficiency Expert", "Purchase every upgrade", "special",
           every_upgrade, coins=2500, happiness=10),
        _a("diversified", "Diversified Economy", "Own at least 1 of each building", "special",
           every_building, coins=5000, happiness=20),
    ]


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

def apply_reward(reward: Dict[str, float], state: SessionState):
    for resource, amount in reward.items():
        added = state.ledger.credit(resource, amount)
        if resource == "coins":
            state.statistics.total_coins_earned += added
        elif resource == "population":
            state.statistics.total_population_gained += added
    state.statistics.observe(state.ledger)


class AchievementEvaluator:
    def __init__(self, definitions: Optional[List[AchievementDefinition]] = None):
        if definitions is None:
            definitions = default_achievements()
        self._definitions: Dict[str, AchievementDefinition] = {}
        for d in definitions:
            if d.id in self._definitions:
                raise ValueError(f"duplicate achievement id: {d.id}")
            for resource in d.reward:
                if resource not in RESOURCES:
                    raise ValueError(f"{d.id}: unknown reward resource {resource!r}")
            self._definitions[d.id] = d

    @property
    def definitions(self) -> List[AchievementDefinition]:
        return list(self._definitions.values())

    def ids(self) -> List[str]:
        return list(self._definitions)

    def get(self, achievement_id: str) -> AchievementDefinition:
        return self._definitions[achievement_id]

    def evaluate(self, state: SessionState) -> List[UnlockEvent]:
        """Unlock every newly satisfied achievement, in definition order.

        Rewards land immediately, so a later definition in the same pass sees
        them.
        """
        events = []
        unlocked = set(state.unlocked)
        for d in self._definitions.values():
            if d.id in unlocked:
                continue
            if not evaluate_predicate(d.predicate, state):
                continue
            state.unlocked.append(d.id)
            unlocked.add(d.id)
            apply_reward(d.reward, state)
            events.append(UnlockEvent(
                achievement_id=d.id,
                name=d.name,
                description=d.description,
                reward=dict(d.reward),
                play_seconds=state.statistics.play_seconds,
            ))
        return events

    def progress(self, state: SessionState) -> Dict[str, float]:
        unlocked = set(state.unlocked)
        return {
            d.id: predicate_progress(d.predicate, state)
            for d in self._definitions.values()
            if d.id not in unlocked
        }

    def summary(self, state: SessionState) -> dict:
        unlocked = set(state.unlocked)
        categories: Dict[str, Dict[str, int]] = {}
        for d in self._definitions.values():
            cat = categories.setdefault(d.category, {"total": 0, "unlocked": 0})
            cat["total"] += 1
            if d.id in unlocked:
                cat["unlocked"] += 1
        total = len(self._definitions)
        count = sum(1 for i in unlocked if i in self._definitions)
        return {
            "total": total,
            "unlocked": count,
            "percentage": round(count / total * 100) if total else 0,
            "categories": categories,
        }


# ---------------------------------------------------------------------------
# Parsing (YAML dicts and CLI strings)
# ---------------------------------------------------------------------------

def parse_predicate(data: dict) -> Predicate:
    """Parse ``{"type": "owned", "target": "houses", "threshold": 1}`` or
    ``{"type": "all_of", "children": [...]}``."""
    try:
        predicate_type = PredicateType(data["type"])
    except (KeyError, ValueError, TypeError):
        raise ValueError(f"invalid predicate: {data!r}") from None

    if predicate_type == PredicateType.ALL_OF:
        children = data.get("children") or []
        return all_of(*(parse_predicate(c) for c in children))

    target = data.get("target")
    if not target:
        raise ValueError(f"predicate needs a target: {data!r}")
    if predicate_type == PredicateType.RESOURCE_AT_LEAST and target not in RESOURCES:
        raise ValueError(f"unknown resource: {target}")
    if predicate_type == PredicateType.STATISTIC_AT_LEAST and target not in Statistics.__dataclass_fields__:
        raise ValueError(f"unknown statistic: {target}")
    return Predicate(predicate_type, target, float(data.get("threshold", 0)))


def parse_predicate_string(s: str) -> Optional[Predicate]:
    """Parse 'statistic:total_clicks:100' or 'owned:houses:5+resource:population:50'.

    Clauses joined with '+' become an ALL_OF predicate. Returns None when
    the string does not parse.
    """
    clauses = [c.strip() for c in s.strip().split("+") if c.strip()]
    if not clauses:
        return None
    parsed = []
    for clause in clauses:
        parts = clause.split(":")
        if len(parts) != 3:
            return None
        try:
            parsed.append(parse_predicate({
                "type": parts[0].strip(),
                "target": parts[1].strip(),
                "threshold": float(parts[2].strip()),
            }))
        except ValueError:
            return None
    if len(parsed) == 1:
        return parsed[0]
    return all_of(*parsed)


def parse_achievement(data: dict) -> AchievementDefinition:
    if "id" not in data or "predicate" not in data:
        raise ValueError(f"achievement needs id and predicate: {data!r}")

    # Predicates may be written as mappings or in the short string form
    raw = data["predicate"]
    if isinstance(raw, str):
        predicate = parse_predicate_string(raw)
        if predicate is None:
            raise ValueError(f"invalid predicate: {raw!r}")
    else:
        predicate = parse_predicate(raw)

    return AchievementDefinition(
        id=str(data["id"]),
        name=str(data.get("name", data["id"])),
        description=str(data.get("description", "")),
        category=str(data.get("category", "general")),
        predicate=predicate,
        reward={k: float(v) for k, v in (data.get("reward") or {}).items()},
    )
