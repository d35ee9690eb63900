from __future__ import annotations

from fastapi import APIRouter

from moleduel.ice_servers import get_ice_servers
from moleduel.runtime import runtime

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health() -> dict[str, object]:
    ws_stats = runtime.get_ws_stats()
    ws_summary = {
        "activeConnections": ws_stats["stats"].get("activeConnections", 0),
        "peakConnections": ws_stats["stats"].get("peakConnections", 0),
        "gamesStarted": ws_stats["stats"].get("gamesStarted", 0),
        "gamesFinished": ws_stats["stats"].get("gamesFinished", 0),
    }
    return {
        "ok": True,
        "activeRooms": runtime.active_rooms_count,
        "websocket": ws_summary,
    }


@router.get("/api/ws-stats")
async def websocket_stats() -> dict[str, object]:
    return runtime.get_ws_stats()


@router.get("/api/turn-credentials")
async def turn_credentials() -> list[dict[str, object]]:
    return await get_ice_servers()
