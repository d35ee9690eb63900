from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .bot import ScriptedBot
from .runtime_constants import ERROR_OWN_ROOM, ERROR_ROOM_FULL, ERROR_ROOM_NOT_FOUND
from .runtime_types import RoomRuntime
from .runtime_utils import now_ms, parse_hole_index, sanitize_room_code

if TYPE_CHECKING:
    from .runtime import GameRuntime
    from .runtime_types import SeatConnection


async def handle_message(
    runtime: "GameRuntime",
    connection: "SeatConnection",
    data: dict[str, Any],
) -> None:
    message_type = data.get("type")

    if message_type == "create_room":
        await _create_room(runtime, connection)
        return

    if message_type == "join_room":
        await _join_room(runtime, connection, data.get("code"))
        return

    room = await runtime._room_for(connection)
    if room is None or connection.seat is None:
        return

    async with room.lock:
        if message_type == "whack":
            index = parse_hole_index(data.get("index"))
            if index is None or not room.active:
                return
            await runtime._apply_whack(room, connection.seat, index)
            return

        if message_type == "hand_pos":
            other = room.opponent_of(connection.seat)
            if other is None:
                return
            await runtime._send_to(other, {"type": "opponent_hands", "positions": data.get("positions")})
            return

        if message_type == "signal":
            other = room.opponent_of(connection.seat)
            if other is None:
                return
            await runtime._send_to(other, {"type": "signal", "data": data.get("data")})
            return

        if message_type == "start_bot":
            if connection.seat != "host" or room.guest is not None:
                return
            # A finished bot match is replayed in a fresh room under the same code.
            rematch = room.phase == "ended" and room.bot is not None
            if room.phase != "lobby" and not rematch:
                return
            if rematch:
                fresh = RoomRuntime(code=room.code, host=connection, created_at_ms=now_ms())
                if not await runtime.registry.replace(room, fresh):
                    return
                runtime._clear_timers(room)
                room = fresh
            room.bot = ScriptedBot(runtime.rng)
            await runtime._send_to(connection, {"type": "bot_activated"})
            runtime._log_ws_event(
                "bot_activated",
                roomId=room.code,
                tickInterval=round(room.bot.tick_interval_s, 3),
            )
            await runtime._begin_countdown(room, with_bot=True)
            return


async def _create_room(runtime: "GameRuntime", connection: "SeatConnection") -> None:
    await runtime._leave_current_room(connection)

    def build(code: str) -> RoomRuntime:
        return RoomRuntime(code=code, host=connection, created_at_ms=now_ms())

    room = await runtime.registry.create(build)
    connection.room_code = room.code
    connection.seat = "host"
    runtime._increment_stat("roomsCreated")
    await runtime._send_to(connection, {"type": "room_created", "code": room.code})
    runtime._log_ws_event("room_created", roomId=room.code, connectionId=connection.connection_id)


async def _reject_join(runtime: "GameRuntime", connection: "SeatConnection", code: str, message: str) -> None:
    runtime._increment_stat("joinRejected")
    await runtime._send_to(connection, {"type": "error", "message": message})
    runtime._log_ws_event("join_rejected", roomId=code or "-", reason=message)


async def _join_room(runtime: "GameRuntime", connection: "SeatConnection", raw_code: Any) -> None:
    code = sanitize_room_code(raw_code)
    room = await runtime.registry.get(code) if code else None
    if room is None:
        await _reject_join(runtime, connection, code, ERROR_ROOM_NOT_FOUND)
        return
    if room.host is connection:
        await _reject_join(runtime, connection, code, ERROR_OWN_ROOM)
        return
    if room.guest is connection or connection.room_code == room.code:
        await _reject_join(runtime, connection, code, ERROR_ROOM_FULL)
        return

    await runtime._leave_current_room(connection)

    async with room.lock:
        if not runtime.registry_holds(room):
            await _reject_join(runtime, connection, code, ERROR_ROOM_NOT_FOUND)
            return
        if room.host is None or room.has_opponent() or room.phase != "lobby":
            await _reject_join(runtime, connection, code, ERROR_ROOM_FULL)
            return

        room.guest = connection
        connection.room_code = room.code
        connection.seat = "guest"
        runtime._increment_stat("roomsJoined")
        await runtime._send_to(connection, {"type": "room_joined", "code": room.code})
        await runtime._send_to(room.host, {"type": "opponent_joined"})
        runtime._log_ws_event("room_joined", roomId=room.code, connectionId=connection.connection_id)
        await runtime._begin_countdown(room, with_bot=False)
