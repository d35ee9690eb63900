from __future__ import annotations

from fastapi import APIRouter, WebSocket

from moleduel.runtime import runtime

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
@router.websocket("/api/ws")
async def game_socket(ws: WebSocket) -> None:
    """Duel channel: room control, whacks, hand telemetry and WebRTC signaling."""
    await runtime.handle_websocket(ws)
