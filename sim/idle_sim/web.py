"""
IdleCity Simulator - Web API
=============================
FastAPI server exposing one live GameSession as JSON.

Usage:
    python -m idle_sim.web
    python cli.py web [--port 8080]
"""

from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from idle_sim.codec import snapshot_from_dict, snapshot_to_dict
from idle_sim.engine import GameSession
from idle_sim.io import load_snapshot, save_snapshot
from idle_sim.models import MalformedDataError, UnknownEntryError, UnlockEvent
from idle_sim.scheduler import TickScheduler


# ---------------------------------------------------------------------------
# Pydantic models for request/response
# ---------------------------------------------------------------------------

class AmountRequest(BaseModel):
    amount: float = Field(1.0, gt=0, allow_inf_nan=False)


class SaveRequest(BaseModel):
    filename: Optional[str] = None


class LoadRequest(BaseModel):
    snapshot: Optional[Dict[str, Any]] = None
    filename: Optional[str] = None


class UnlockEventOut(BaseModel):
    achievement_id: str
    name: str
    description: str
    reward: Dict[str, float]
    play_seconds: float


class ActionResponse(BaseModel):
    ledger: Dict[str, float]
    events: List[UnlockEventOut] = []


class PurchaseResponse(BaseModel):
    key: str
    result: str
    owned: int
    ledger: Dict[str, float]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _event_out(event: UnlockEvent) -> UnlockEventOut:
    return UnlockEventOut(**asdict(event))


def _state_to_dict(session: GameSession, scheduler: TickScheduler) -> dict:
    with session.lock:
        return {
            "ledger": session.ledger(),
            "rates": session.rates(),
            "ownership": session.ownership(),
            "unlocked": session.unlocked(),
            "statistics": asdict(session.statistics()),
            "scheduler": scheduler.state.value,
        }


def _catalog_to_list(session: GameSession) -> list:
    out = []
    with session.lock:
        for entry in session.catalog:
            maxed = session.is_maxed(entry.key)
            out.append({
                "key": entry.key,
                "name": entry.name,
                "kind": entry.kind,
                "description": entry.description,
                "owned": session.owned(entry.key),
                "max_level": entry.level_cap,
                "next_cost": None if maxed else session.cost_of(entry.key),
                "effects": dict(entry.effects),
                "multipliers": dict(entry.multipliers),
                "unlocked": session.is_unlocked(entry.key),
                "affordable": session.can_afford(entry.key),
                "maxed": maxed,
            })
    return out


def _save_file(save_dir: Path, filename: str) -> Path:
    # Only bare names; saves never leave save_dir
    return save_dir / Path(filename).name


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    session: Optional[GameSession] = None,
    scheduler: Optional[TickScheduler] = None,
    save_dir: Optional[str] = None,
) -> FastAPI:
    session = session or GameSession()
    saves = Path(save_dir) if save_dir else Path(session.config.save_path).parent
    if scheduler is None:
        autosave_path = saves / Path(session.config.save_path).name
        scheduler = TickScheduler(
            session, on_autosave=lambda snap: save_snapshot(snap, str(autosave_path)),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler.start()
        yield
        scheduler.stop()

    app = FastAPI(title="IdleCity Simulator", lifespan=lifespan)
    app.state.session = session
    app.state.scheduler = scheduler

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    @app.get("/api/state")
    def api_state():
        return _state_to_dict(session, scheduler)

    @app.get("/api/catalog")
    def api_catalog():
        return _catalog_to_list(session)

    @app.get("/api/achievements")
    def api_achievements():
        with session.lock:
            unlocked = set(session.unlocked())
            progress = session.achievement_progress()
            summary = session.achievement_summary()
        return {
            "summary": summary,
            "achievements": [
                {
                    "id": d.id,
                    "name": d.name,
                    "description": d.description,
                    "category": d.category,
                    "reward": dict(d.reward),
                    "unlocked": d.id in unlocked,
                    "progress": progress.get(d.id, 0.0),
                }
                for d in session.achievements.definitions
            ],
        }

    @app.get("/api/events", response_model=List[UnlockEventOut])
    def api_events():
        """Unlock notifications since the last call."""
        return [_event_out(e) for e in session.drain_events()]

    # -----------------------------------------------------------------------
    # Actions
    # -----------------------------------------------------------------------

    @app.post("/api/collect", response_model=ActionResponse)
    def api_collect(req: AmountRequest):
        with session.lock:
            events = session.collect_coins(req.amount)
            return ActionResponse(ledger=session.ledger(), events=[_event_out(e) for e in events])

    @app.post("/api/attract", response_model=ActionResponse)
    def api_attract(req: AmountRequest):
        with session.lock:
            events = session.attract_population(req.amount)
            return ActionResponse(ledger=session.ledger(), events=[_event_out(e) for e in events])

    @app.post("/api/purchase/{key}", response_model=PurchaseResponse)
    def api_purchase(key: str):
        with session.lock:
            try:
                result = session.purchase(key)
            except UnknownEntryError:
                raise HTTPException(404, f"Unknown catalog entry: {key}")
            if not result.ok:
                raise HTTPException(409, result.value)
            return PurchaseResponse(
                key=key, result=result.value,
                owned=session.owned(key), ledger=session.ledger(),
            )

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    @app.post("/api/save")
    def api_save(req: SaveRequest = SaveRequest()):
        snapshot = session.save()
        data = snapshot_to_dict(snapshot)
        if req.filename:
            path = _save_file(saves, req.filename)
            try:
                save_snapshot(snapshot, str(path))
            except OSError as e:
                raise HTTPException(500, f"Could not write save: {e}")
            return {"saved": path.name, "snapshot": data}
        return {"snapshot": data}

    @app.post("/api/load")
    def api_load(req: LoadRequest):
        try:
            if req.snapshot is not None:
                snapshot = snapshot_from_dict(req.snapshot)
            elif req.filename:
                path = _save_file(saves, req.filename)
                if not path.exists():
                    raise HTTPException(404, f"Save not found: {req.filename}")
                snapshot = load_snapshot(str(path))
            else:
                raise HTTPException(400, "Provide either snapshot or filename")
            credited = session.load(snapshot)
        except MalformedDataError as e:
            raise HTTPException(422, str(e))
        return {"offline_seconds": credited, "state": _state_to_dict(session, scheduler)}

    @app.post("/api/reset")
    def api_reset():
        session.reset()
        return _state_to_dict(session, scheduler)

    # -----------------------------------------------------------------------
    # Scheduler
    # -----------------------------------------------------------------------

    @app.post("/api/scheduler/start")
    def api_scheduler_start():
        scheduler.start()
        return {"scheduler": scheduler.state.value}

    @app.post("/api/scheduler/stop")
    def api_scheduler_stop():
        scheduler.stop()
        return {"scheduler": scheduler.state.value}

    return app


def start_server(port: int = 8080, session: Optional[GameSession] = None):
    """Start the uvicorn server."""
    app = create_app(session)
    print(f"Starting IdleCity Simulator at http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    start_server()
