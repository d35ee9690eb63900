from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from .config import settings
from .registry import RoomRegistry
from .runtime_message_handlers import handle_message as handle_connection_message
from .runtime_phase_flow import (
    begin_countdown as begin_room_countdown,
    bot_tick as run_room_bot_tick,
    end_game as end_room_game,
    ramp_room_difficulty,
    spawn_next as spawn_next_room_mole,
    start_game as start_room_game,
    tick_countdown as tick_room_countdown,
)
from .runtime_results import build_room_summary
from .runtime_types import RoomRuntime, Seat, SeatConnection
from .runtime_utils import now_ms, random_id
from .scheduler import (
    DelaySource,
    OneShotCallback,
    RepeatingCallback,
    cancel_timer,
    clear_timers,
    schedule_once,
    schedule_repeating,
)
from .whack import apply_whack

logger = logging.getLogger(__name__)


class GameRuntime:
    def __init__(
        self,
        registry: RoomRegistry | None = None,
        *,
        rng: random.Random | None = None,
        game_duration_s: int | None = None,
        time_scale: float | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.registry = registry or RoomRegistry(self.rng)
        self.game_duration_s = max(1, int(game_duration_s or settings.game_duration_seconds))
        self.time_scale = float(time_scale if time_scale is not None else settings.game_time_scale)
        self._pending_cleanups: set[asyncio.Task[None]] = set()
        self._ws_stats: dict[str, int] = {
            "connectSuccess": 0,
            "disconnects": 0,
            "messageReceived": 0,
            "malformedMessages": 0,
            "sendFailures": 0,
            "roomsCreated": 0,
            "roomsJoined": 0,
            "joinRejected": 0,
            "roomsEvicted": 0,
            "gamesStarted": 0,
            "gamesFinished": 0,
            "botGames": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return len(self.registry)

    def registry_holds(self, room: RoomRuntime) -> bool:
        return self.registry.rooms.get(room.code) is room

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    def get_ws_stats(self) -> dict[str, Any]:
        return {
            "stats": dict(self._ws_stats),
            "activeRooms": self.active_rooms_count,
            "rooms": [build_room_summary(room) for room in self.registry.snapshot()],
            "generatedAt": now_ms(),
        }

    async def shutdown(self) -> None:
        rooms = await self.registry.drain()
        for room in rooms:
            async with room.lock:
                self._clear_timers(room)
                if room.phase != "ended":
                    room.phase = "ended"
        self._ws_stats["activeConnections"] = 0

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection = SeatConnection(connection_id=random_id(), websocket=websocket)
        self._on_connect()
        self._log_ws_event("connect", connectionId=connection.connection_id)

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                try:
                    data = json.loads(raw)
                except ValueError:
                    self._increment_stat("malformedMessages")
                    continue
                if not isinstance(data, dict):
                    self._increment_stat("malformedMessages")
                    continue
                self._increment_stat("messageReceived")
                await self._handle_message(connection, data)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception(
                "Unexpected websocket error for room %s connection %s",
                connection.room_code or "-",
                connection.connection_id,
            )
        finally:
            self._on_disconnect()
            # Teardown must finish even when the server cancels this handler.
            cleanup = asyncio.ensure_future(
                self._cleanup_connection(
                    connection,
                    reason=disconnect_reason,
                    close_code=disconnect_code,
                )
            )
            self._pending_cleanups.add(cleanup)
            cleanup.add_done_callback(self._on_cleanup_done)
            await asyncio.shield(cleanup)

    def _on_cleanup_done(self, task: "asyncio.Task[None]") -> None:
        self._pending_cleanups.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Connection cleanup failed", exc_info=task.exception())

    async def _handle_message(self, connection: SeatConnection, data: dict[str, Any]) -> None:
        await handle_connection_message(self, connection, data)

    async def _room_for(self, connection: SeatConnection) -> RoomRuntime | None:
        if not connection.room_code:
            return None
        room = await self.registry.get(connection.room_code)
        if room is None:
            return None
        if room.connection_for(connection.seat or "host") is not connection:
            return None
        return room

    async def _cleanup_connection(
        self,
        connection: SeatConnection,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        room = await self._room_for(connection)
        if room is None:
            connection.room_code = None
            connection.seat = None
            return

        seat = connection.seat or "host"
        async with room.lock:
            was_active = room.active
            if was_active:
                await self._end_game(room)
            self._clear_timers(room)
            if room.phase != "ended":
                room.phase = "ended"

            if seat == "host":
                room.host = None
            else:
                room.guest = None

            other = room.opponent_of(seat)
            if other is not None:
                await self._send_to(other, {"type": "opponent_disconnected"})

        removed = await self.registry.remove(room)
        if removed:
            self._increment_stat("roomsEvicted")
        connection.room_code = None
        connection.seat = None

        logger.info(
            "[DISCONNECT] room=%s seat=%s code=%s reason=%s",
            room.code,
            seat,
            close_code,
            reason,
        )
        self._log_ws_event(
            "disconnect",
            roomId=room.code,
            seat=seat,
            wasActive=was_active,
            reason=reason,
            closeCode=close_code,
        )

    async def _leave_current_room(self, connection: SeatConnection) -> None:
        if connection.room_code:
            await self._cleanup_connection(connection, reason="left_room")

    async def _send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        room_id: str | None = None,
        seat: str | None = None,
    ) -> None:
        if getattr(websocket, "client_state", WebSocketState.CONNECTED) != WebSocketState.CONNECTED:
            return
        try:
            await websocket.send_json(data)
        except Exception as exc:
            # Connection may already be closed.
            self._increment_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] room=%s seat=%s reason=%s ws_client_state=%s ws_application_state=%s",
                room_id or "-",
                seat or "-",
                repr(exc),
                getattr(websocket, "client_state", None),
                getattr(websocket, "application_state", None),
            )

    async def _send_to(self, connection: SeatConnection, data: dict[str, Any]) -> None:
        await self._send_safe(
            connection.websocket,
            data,
            room_id=connection.room_code,
            seat=connection.seat,
        )

    async def _broadcast(self, room: RoomRuntime, data: dict[str, Any]) -> None:
        for connection in (room.host, room.guest):
            if connection is not None:
                await self._send_to(connection, data)

    async def _apply_whack(self, room: RoomRuntime, seat: Seat, index: int) -> list[dict[str, Any]]:
        events = apply_whack(room, seat, index)
        for event in events:
            if event["type"] == "hide_mole":
                self._cancel_timer(room, f"expire:{event['index']}")
            await self._broadcast(room, event)
        return events

    def _scaled(self, seconds: float) -> float:
        return seconds * self.time_scale

    def _cancel_timer(self, room: RoomRuntime, key: str) -> None:
        cancel_timer(room, key)

    def _clear_timers(self, room: RoomRuntime) -> None:
        clear_timers(room)

    def _schedule_once(
        self,
        room: RoomRuntime,
        key: str,
        delay_s: float,
        callback: OneShotCallback,
    ) -> None:
        schedule_once(room, key, self._scaled(delay_s), callback)

    def _schedule_repeating(
        self,
        room: RoomRuntime,
        key: str,
        next_delay: DelaySource,
        callback: RepeatingCallback,
    ) -> None:
        schedule_repeating(room, key, lambda: self._scaled(next_delay()), callback)

    async def _begin_countdown(self, room: RoomRuntime, *, with_bot: bool) -> None:
        await begin_room_countdown(self, room, with_bot=with_bot)

    async def _start_game(self, room: RoomRuntime) -> None:
        await start_room_game(self, room)

    async def _end_game(self, room: RoomRuntime) -> bool:
        return await end_room_game(self, room)

    async def _tick_countdown(self, room: RoomRuntime) -> bool:
        return await tick_room_countdown(self, room)

    async def _ramp_difficulty(self, room: RoomRuntime) -> bool:
        return await ramp_room_difficulty(self, room)

    async def _spawn_next(self, room: RoomRuntime) -> bool:
        return await spawn_next_room_mole(self, room)

    async def _bot_tick(self, room: RoomRuntime) -> bool:
        return await run_room_bot_tick(self, room)


runtime = GameRuntime()
