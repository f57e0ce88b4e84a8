"""
IdleCity Simulator - I/O
=========================
Save files, catalogs, achievement sets, game config and playthrough scripts
as YAML (snapshots may also be JSON).
"""

import json
import yaml
from pathlib import Path
from typing import List

from idle_sim.achievements import AchievementDefinition, parse_achievement
from idle_sim.catalog import BUILDING, Catalog, CatalogEntry
from idle_sim.codec import snapshot_from_dict, snapshot_to_dict
from idle_sim.models import (
    ActionType, GameConfig, MalformedDataError, Playthrough, ScriptedAction,
    Snapshot,
)


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def save_snapshot(snapshot: Snapshot, filepath: str):
    path = Path(filepath)
    if path.suffix == ".json":
        export_snapshot_json(snapshot, filepath)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(snapshot_to_dict(snapshot), f, default_flow_style=False, sort_keys=False)


def export_snapshot_json(snapshot: Snapshot, filepath: str):
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=2)


def load_snapshot(filepath: str) -> Snapshot:
    """Read a YAML or JSON save. Corrupt content raises MalformedDataError."""
    path = Path(filepath)
    with open(path, "r") as f:
        text = f.read()
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedDataError(f"cannot parse {path.name}: {e}") from None
    return snapshot_from_dict(data)


# ---------------------------------------------------------------------------
# Game config
# ---------------------------------------------------------------------------

def load_game_config(filepath: str) -> GameConfig:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    return GameConfig(**{k: data[k] for k in data if k in GameConfig.__dataclass_fields__})


# ---------------------------------------------------------------------------
# Catalog and achievements
# ---------------------------------------------------------------------------

def load_catalog(filepath: str) -> Catalog:
    """Load a catalog file: a top-level ``entries:`` list of entry mappings."""
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}

    entries = []
    for item in data.get("entries", []):
        entries.append(CatalogEntry(
            key=item["key"],
            name=item.get("name", item["key"]),
            kind=item.get("kind", BUILDING),
            description=item.get("description", ""),
            base_cost={k: float(v) for k, v in (item.get("base_cost") or {}).items()},
            cost_growth=float(item.get("cost_growth", 1.0)),
            effects={k: float(v) for k, v in (item.get("effects") or {}).items()},
            multipliers={k: float(v) for k, v in (item.get("multipliers") or {}).items()},
            unlock={k: float(v) for k, v in (item.get("unlock") or {}).items()},
            requires={k: int(v) for k, v in (item.get("requires") or {}).items()},
            max_level=item.get("max_level"),
            one_time=bool(item.get("one_time", False)),
        ))
    return Catalog(entries)


def load_achievements(filepath: str) -> List[AchievementDefinition]:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}
    return [parse_achievement(item) for item in data.get("achievements", [])]


# ---------------------------------------------------------------------------
# Playthrough scripts
# ---------------------------------------------------------------------------

def load_playthrough(filepath: str) -> Playthrough:
    with open(filepath, "r") as f:
        data = yaml.safe_load(f) or {}

    pt = Playthrough(
        name=data.get("name", Path(filepath).stem),
        description=data.get("description", ""),
        duration=float(data.get("duration", 600)),
        step=float(data.get("step", 1.0)),
    )

    # Each action is either "buy houses" / "collect 5" shorthand or a mapping
    for item in data.get("actions", []):
        pt.actions.append(_parse_action(item))
    return pt


def _parse_action(item) -> ScriptedAction:
    if isinstance(item, str):
        at_str, _, rest = item.partition("@")
        parts = rest.split() if rest else at_str.split()
        at = float(at_str) if rest else 0.0
        item = {"at": at, "action": parts[0]}
        if len(parts) > 1:
            if item["action"] == ActionType.BUY.value:
                item["target"] = parts[1]
            else:
                item["amount"] = float(parts[1])
        if len(parts) > 2:
            item["repeat"] = int(parts[2].lstrip("x"))

    action = ActionType(item["action"])
    if action == ActionType.BUY and not item.get("target"):
        raise ValueError(f"buy action needs a target: {item!r}")
    return ScriptedAction(
        at=float(item.get("at", 0)),
        action=action,
        target=item.get("target"),
        amount=float(item.get("amount", 1)),
        repeat=int(item.get("repeat", 1)),
    )


def save_playthrough(pt: Playthrough, filepath: str):
    data = {
        "name": pt.name,
        "description": pt.description,
        "duration": pt.duration,
        "step": pt.step,
        "actions": [],
    }
    for a in pt.actions:
        entry = {"at": a.at, "action": a.action.value}
        if a.target:
            entry["target"] = a.target
        if a.action != ActionType.BUY:
            entry["amount"] = a.amount
        if a.repeat != 1:
            entry["repeat"] = a.repeat
        data["actions"].append(entry)

    with open(filepath, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
