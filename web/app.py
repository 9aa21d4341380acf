from fastapi import FastAPI, HTTPException, Request
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.api_client import LeagueStoreClient
from src.config import LEAGUE_API_BASE_URL, LEAGUE_LOG_LEVEL
from src.league_service import LeagueService, OperationResult
from src.records import coerce_int

logging.basicConfig(
    level=getattr(logging, LEAGUE_LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Commander League")

store = LeagueStoreClient()
service = LeagueService(store)
logger.info("Using league store at %s", LEAGUE_API_BASE_URL)

STATUS_BY_REASON = {
    "validation": 400,
    "not_found": 404,
    "store": 502,
    "reconciliation": 502,
}


def _raise_for(result: OperationResult) -> None:
    if result.ok:
        return
    raise HTTPException(
        status_code=STATUS_BY_REASON.get(result.reason or "", 500),
        detail={"message": result.message, "reason": result.reason, "field": result.field},
    )


def _report_dict(result: OperationResult) -> dict:
    report = result.report
    if report is None:
        return {}
    return {
        "mode": report.mode,
        "players_updated": report.players_updated,
        "decks_updated": report.decks_updated,
        "seats_skipped": report.seats_skipped,
        "unmatched": report.unmatched,
    }


async def _json_body(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    return payload if isinstance(payload, dict) else {}


def _player_ref(key: str) -> dict:
    numeric = coerce_int(key)
    if numeric is not None:
        return {"playerID": numeric}
    return {"playerName": key}


@app.get("/ping")
async def ping() -> dict:
    return {"ok": True}


# --- Players ---

@app.get("/api/players")
async def players_table() -> dict:
    result = await service.player_standings()
    _raise_for(result)
    return {"players": result.data, "count": len(result.data)}


@app.post("/api/players")
async def players_create(request: Request) -> dict:
    payload = await _json_body(request)
    result = await service.create_player(str(payload.get("name") or payload.get("playerName") or ""))
    _raise_for(result)
    return {"ok": True, "message": result.message, "player": result.record}


@app.delete("/api/players/{key}")
async def players_delete(key: str) -> dict:
    numeric = coerce_int(key)
    result = await service.delete_player(numeric if numeric is not None else key)
    _raise_for(result)
    return {"ok": True, "message": result.message}


@app.get("/api/players/{key}/suggested-deck")
async def players_suggested_deck(key: str) -> dict:
    result = await service.suggest_deck(_player_ref(key))
    _raise_for(result)
    return {"player": key, "deck": result.record}


# --- Decks ---

@app.get("/api/decks")
async def decks_table() -> dict:
    result = await service.deck_standings()
    _raise_for(result)
    return {"decks": result.data, "count": len(result.data)}


@app.post("/api/decks")
async def decks_create(request: Request) -> dict:
    payload = await _json_body(request)
    owner = coerce_int(payload.get("playerID") if "playerID" in payload else payload.get("owner_id"))
    result = await service.create_deck(str(payload.get("name") or payload.get("deckName") or ""), owner_id=owner)
    _raise_for(result)
    return {"ok": True, "message": result.message, "deck": result.record}


@app.delete("/api/decks/{key}")
async def decks_delete(key: str) -> dict:
    numeric = coerce_int(key)
    result = await service.delete_deck(numeric if numeric is not None else key)
    _raise_for(result)
    return {"ok": True, "message": result.message}


# --- Matches ---

@app.get("/api/matches")
async def matches_history() -> dict:
    result = await service.match_history()
    _raise_for(result)
    return {"matches": result.data, "count": len(result.data)}


@app.post("/api/matches")
async def matches_create(request: Request) -> dict:
    payload = await _json_body(request)
    slots = payload.get("slots") or payload.get("seats") or []
    if not isinstance(slots, list):
        raise HTTPException(status_code=400, detail={"message": "slots must be a list", "reason": "validation"})
    result = await service.create_match(slots, str(payload.get("format") or "cedh"))
    _raise_for(result)
    return {"ok": True, "message": result.message, "match": result.record, "report": _report_dict(result)}


@app.delete("/api/matches/{key}")
async def matches_delete(key: str) -> dict:
    result = await service.delete_match_by_key(key)
    _raise_for(result)
    return {"ok": True, "message": result.message, "report": _report_dict(result)}


@app.get("/api/favorites")
async def favorites() -> dict:
    result = await service.favorites()
    _raise_for(result)
    favorites = result.data
    return {
        "by_id": {str(k): v for k, v in favorites.by_id.items()},
        "by_name": dict(favorites.by_name),
    }


if __name__ == "__main__":
    import uvicorn

    print("Starting Commander League API...")
    print("Open http://localhost:8000/docs in your browser")
    uvicorn.run(app, host="127.0.0.1", port=8000)
