"""Tests for YAML/JSON file I/O."""

import json
from pathlib import Path

import pytest
import yaml

from idle_sim.io import (
    export_snapshot_json, load_achievements, load_catalog, load_game_config,
    load_playthrough, load_snapshot, save_playthrough, save_snapshot,
)
from idle_sim.models import ActionType, MalformedDataError, Playthrough, ScriptedAction

DATA_DIR = Path(__file__).parent.parent / "data"


def test_snapshot_yaml_round_trip(bare_session, tmp_path):
    bare_session.state.ledger.set("coins", 1.5e9)
    bare_session.state.ownership.update({"houses": 4, "city_planning": True})
    snapshot = bare_session.save()

    path = tmp_path / "saves" / "city.yaml"
    save_snapshot(snapshot, str(path))
    assert path.exists()
    assert load_snapshot(str(path)) == snapshot


def test_snapshot_json_round_trip(bare_session, tmp_path):
    bare_session.state.ownership["houses"] = 2
    snapshot = bare_session.save()

    path = tmp_path / "city.json"
    export_snapshot_json(snapshot, str(path))
    assert json.loads(path.read_text())["ownership"]["houses"] == 2
    assert load_snapshot(str(path)) == snapshot

    # save_snapshot picks JSON by suffix too
    other = tmp_path / "other.json"
    save_snapshot(snapshot, str(other))
    assert json.loads(other.read_text())["version"] == "1.0"


@pytest.mark.parametrize("name,text", [
    ("broken.yaml", "ledger: [unclosed\n"),
    ("broken.json", "{not json"),
    ("empty.yaml", ""),
    ("list.yaml", "- 1\n- 2\n"),
])
def test_corrupt_save_files(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    with pytest.raises(MalformedDataError):
        load_snapshot(str(path))


def test_missing_save_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_snapshot(str(tmp_path / "nope.yaml"))


def test_game_config_ignores_unknown_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "tick_interval": 0.5,
        "offline_progress": True,
        "theme": "dark",
    }))
    cfg = load_game_config(str(path))
    assert cfg.tick_interval == 0.5
    assert cfg.offline_progress is True
    assert cfg.autosave_interval == 10


def test_bundled_config_files_load():
    cfg = load_game_config(str(DATA_DIR / "config" / "default.yaml"))
    assert cfg.happiness_cap == 100

    low = load_game_config(str(DATA_DIR / "config" / "low_morale.yaml"))
    assert low.starting_happiness < low.happiness_cap

    catalog = load_catalog(str(DATA_DIR / "config" / "catalog.yaml"))
    assert catalog.keys() == ["huts", "stalls", "trade_routes"]
    assert catalog.get("trade_routes").max_level == 3
    assert catalog.get("stalls").unlock == {"population": 5.0}

    definitions = load_achievements(str(DATA_DIR / "config" / "achievements.yaml"))
    assert [d.id for d in definitions] == ["firstClick", "firstHouse", "busyStreet"]


def test_catalog_rejects_bad_entry(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump({"entries": [
        {"key": "mine", "base_cost": {"gold": 5}},
    ]}))
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_load_bundled_playthrough():
    pt = load_playthrough(str(DATA_DIR / "playthroughs" / "starter.yaml"))
    assert pt.name == "Starter City"
    assert pt.duration == 600
    first = pt.actions[0]
    assert first.action == ActionType.COLLECT
    assert first.repeat == 10
    parks = [a for a in pt.actions if a.target == "parks"]
    assert parks[0].at == 180


def test_playthrough_shorthand(tmp_path):
    path = tmp_path / "pt.yaml"
    path.write_text(yaml.safe_dump({
        "name": "Shorthand",
        "actions": ["12@buy houses x3", "attract 2", "30@collect 1"],
    }))
    pt = load_playthrough(str(path))
    buy, attract, collect = pt.actions
    assert (buy.at, buy.action, buy.target, buy.repeat) == (12.0, ActionType.BUY, "houses", 3)
    assert (attract.at, attract.action, attract.amount) == (0.0, ActionType.ATTRACT, 2.0)
    assert (collect.at, collect.amount) == (30.0, 1.0)


def test_playthrough_buy_needs_target(tmp_path):
    path = tmp_path / "pt.yaml"
    path.write_text(yaml.safe_dump({"actions": [{"at": 0, "action": "buy"}]}))
    with pytest.raises(ValueError):
        load_playthrough(str(path))


def test_playthrough_round_trip(tmp_path):
    pt = Playthrough(
        name="Round Trip Test",
        duration=300,
        step=0.5,
        actions=[
            ScriptedAction(at=0, action=ActionType.COLLECT, amount=2, repeat=5),
            ScriptedAction(at=10, action=ActionType.BUY, target="houses"),
        ],
    )
    path = tmp_path / "pt.yaml"
    save_playthrough(pt, str(path))
    loaded = load_playthrough(str(path))
    assert loaded.name == "Round Trip Test"
    assert loaded.step == 0.5
    assert loaded.actions == pt.actions


def test_load_clicker_playthrough():
    pt = load_playthrough(str(DATA_DIR / "playthroughs" / "clicker.yaml"))
    assert {a.action for a in pt.actions} == {ActionType.COLLECT, ActionType.ATTRACT}
    assert sum(a.repeat for a in pt.actions) == 112
