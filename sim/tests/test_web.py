"""Tests for the HTTP API (FastAPI TestClient)."""

import pytest
from fastapi.testclient import TestClient

from idle_sim.achievements import AchievementEvaluator
from idle_sim.engine import GameSession
from idle_sim.scheduler import ManualClock, TickScheduler
from idle_sim.web import create_app


@pytest.fixture
def web_clock():
    return ManualClock(5000.0)


@pytest.fixture
def app_session(web_clock):
    return GameSession(achievements=AchievementEvaluator([]), clock=web_clock)


@pytest.fixture
def app_scheduler(app_session, web_clock):
    return TickScheduler(app_session, interval=1.0, clock=web_clock, threaded=False)


@pytest.fixture
def client(app_session, app_scheduler, tmp_path):
    app = create_app(app_session, app_scheduler, save_dir=str(tmp_path))
    with TestClient(app) as c:
        yield c


def test_lifespan_runs_scheduler(client, app_scheduler):
    assert app_scheduler.is_running
    assert client.get("/api/state").json()["scheduler"] == "running"


def test_scheduler_stopped_after_shutdown(app_session, app_scheduler, tmp_path):
    with TestClient(create_app(app_session, app_scheduler, save_dir=str(tmp_path))):
        assert app_scheduler.is_running
    assert not app_scheduler.is_running


def test_state(client):
    data = client.get("/api/state").json()
    assert data["ledger"] == {"coins": 0, "population": 0, "happiness": 100}
    assert data["rates"]["coins"] == 0
    assert data["ownership"]["houses"] == 0
    assert data["unlocked"] == []
    assert data["statistics"]["total_clicks"] == 0


def test_collect_and_purchase(client):
    for _ in range(12):
        resp = client.post("/api/collect", json={"amount": 1})
        assert resp.status_code == 200
    assert resp.json()["ledger"]["coins"] == 12

    resp = client.post("/api/purchase/houses")
    assert resp.status_code == 200
    body = resp.json()
    assert body["result"] == "success"
    assert body["owned"] == 1
    assert body["ledger"]["coins"] == 2


def test_purchase_rejections(client):
    resp = client.post("/api/purchase/houses")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "insufficient_funds"

    resp = client.post("/api/purchase/shops")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "locked"

    resp = client.post("/api/purchase/castles")
    assert resp.status_code == 404


def test_invalid_amount(client):
    assert client.post("/api/collect", json={"amount": 0}).status_code == 422
    assert client.post("/api/attract", json={"amount": -5}).status_code == 422


def test_non_finite_amount_rejected(client):
    headers = {"content-type": "application/json"}
    for body in ('{"amount": NaN}', '{"amount": Infinity}'):
        resp = client.post("/api/collect", content=body, headers=headers)
        assert resp.status_code == 422
    assert client.get("/api/state").json()["ledger"]["coins"] == 0


def test_attract_default_amount(client):
    resp = client.post("/api/attract", json={})
    assert resp.json()["ledger"]["population"] == 1


def test_catalog(client):
    entries = {e["key"]: e for e in client.get("/api/catalog").json()}
    assert entries["houses"]["next_cost"] == {"coins": 10}
    assert entries["houses"]["unlocked"] is True
    assert entries["shops"]["unlocked"] is False
    assert entries["city_planning"]["max_level"] == 1
    assert entries["residential_efficiency"]["kind"] == "upgrade"


def test_scheduler_endpoints(client, app_scheduler, app_session, web_clock):
    assert client.post("/api/scheduler/stop").json() == {"scheduler": "stopped"}
    web_clock.advance(10)
    assert app_scheduler.pump() == 0.0

    assert client.post("/api/scheduler/start").json() == {"scheduler": "running"}
    app_session.state.ownership["houses"] = 1
    web_clock.advance(5)
    app_scheduler.pump()
    assert client.get("/api/state").json()["ledger"]["population"] == 5


def test_save_and_load_snapshot(client, app_session):
    app_session.state.ledger.set("coins", 100)
    app_session.state.ownership["houses"] = 2
    snapshot = client.post("/api/save").json()["snapshot"]

    client.post("/api/reset")
    assert client.get("/api/state").json()["ledger"]["coins"] == 0

    resp = client.post("/api/load", json={"snapshot": snapshot})
    assert resp.status_code == 200
    assert resp.json()["state"]["ledger"]["coins"] == 100
    assert resp.json()["state"]["ownership"]["houses"] == 2


def test_save_and_load_file(client, app_session, tmp_path):
    app_session.state.ledger.set("population", 25)
    resp = client.post("/api/save", json={"filename": "../escape.yaml"})
    assert resp.json()["saved"] == "escape.yaml"
    assert (tmp_path / "escape.yaml").exists()

    client.post("/api/reset")
    resp = client.post("/api/load", json={"filename": "escape.yaml"})
    assert resp.status_code == 200
    assert app_session.ledger()["population"] == 25

    assert client.post("/api/load", json={"filename": "missing.yaml"}).status_code == 404
    assert client.post("/api/load", json={}).status_code == 400


def test_malformed_load_keeps_state(client, app_session):
    app_session.state.ledger.set("coins", 42)
    snapshot = client.post("/api/save").json()["snapshot"]
    snapshot["ownership"]["castles"] = 3

    resp = client.post("/api/load", json={"snapshot": snapshot})
    assert resp.status_code == 422
    assert app_session.ledger()["coins"] == 42

    resp = client.post("/api/load", json={"snapshot": {"version": "1.0"}})
    assert resp.status_code == 422


def test_events_and_achievements(tmp_path):
    session = GameSession(clock=ManualClock(0.0))
    scheduler = TickScheduler(session, interval=1.0, clock=session.clock, threaded=False)
    with TestClient(create_app(session, scheduler, save_dir=str(tmp_path))) as client:
        resp = client.post("/api/collect", json={"amount": 1})
        assert [e["achievement_id"] for e in resp.json()["events"]] == ["firstClick"]

        events = client.get("/api/events").json()
        assert [e["achievement_id"] for e in events] == ["firstClick"]
        assert events[0]["reward"] == {"coins": 10}
        assert client.get("/api/events").json() == []

        data = client.get("/api/achievements").json()
        assert data["summary"]["unlocked"] == 1
        first = next(a for a in data["achievements"] if a["id"] == "firstClick")
        assert first["unlocked"] is True
        master = next(a for a in data["achievements"] if a["id"] == "clickMaster")
        assert master["progress"] == pytest.approx(0.01)
