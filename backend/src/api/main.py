"""
Status API: read-only view of the sync loop plus a manual refresh trigger.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env and ensure backend/src is on path
backend_dir = Path(__file__).resolve().parent.parent.parent
load_dotenv(backend_dir / ".env")
sys.path.insert(0, str(backend_dir / "src"))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from espn_api.client import SportsAPIError
from refresh.orchestrator import SyncOrchestrator

app = FastAPI(title="Sports Sync API", version="2.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set by the service at startup; the API is useless without a running loop
_orchestrator: SyncOrchestrator | None = None


def attach_orchestrator(orchestrator: SyncOrchestrator | None):
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator() -> SyncOrchestrator:
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Sync service not running")
    return _orchestrator


def _iso(value):
    return value.isoformat() if value else None


@app.get("/health")
def health():
    orchestrator = _orchestrator
    if orchestrator is None:
        return {"status": "starting", "running": False}
    return {
        "status": "ok",
        "running": orchestrator.running,
        "updating": orchestrator.is_updating,
        "cycle_count": orchestrator.cycle_count,
        "last_cycle_started_at": _iso(orchestrator.last_cycle_started_at),
        "last_cycle_finished_at": _iso(orchestrator.last_cycle_finished_at),
        "next_run_at": _iso(orchestrator.scheduler.next_run_at),
        "debug_mode": orchestrator.config.debug_mode or None,
    }


@app.get("/api/v1/sources")
def list_sources():
    """Latest cycle results, one per tracked source."""
    orchestrator = get_orchestrator()
    time_zone = orchestrator.config.time_zone
    return {
        "sources": [result.to_dict(time_zone) for result in orchestrator.latest_results],
        "cycle_count": orchestrator.cycle_count,
        "last_cycle_finished_at": _iso(orchestrator.last_cycle_finished_at),
    }


@app.get("/api/v1/sources/{source_key}/schedule")
def get_schedule(source_key: str):
    orchestrator = get_orchestrator()
    if source_key not in orchestrator.sources:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source_key}")
    entry = orchestrator.cache.get_entry(source_key)
    return {
        "source_key": source_key,
        "fetched_at": _iso(entry.schedule_fetched_at),
        "schedule": entry.schedule.to_dict() if entry.schedule else None,
    }


@app.post("/api/v1/refresh", status_code=202)
async def request_refresh():
    orchestrator = get_orchestrator()
    accepted = orchestrator.request_refresh()
    return {"accepted": accepted, "updating": orchestrator.is_updating}


@app.get("/api/v1/leagues/{league}/teams/{team_id}/logo")
async def get_team_logo(league: str, team_id: int):
    orchestrator = get_orchestrator()
    source = orchestrator.sources.get(league.lower())
    if source is None or orchestrator.icons is None:
        raise HTTPException(status_code=404, detail=f"Unknown league: {league}")
    try:
        path = await orchestrator.icons.get_icon(source.league, team_id)
    except SportsAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if path is None:
        raise HTTPException(status_code=404, detail=f"Unknown team: {team_id}")
    return FileResponse(path, media_type="image/png")
