from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .runtime_constants import (
    BOT_COUNTDOWN_SECONDS,
    DANGER_CHANCE_CAP,
    DANGER_CHANCE_STEP,
    DIFFICULTY_RAMP_SECONDS,
    HOLE_COUNT,
    INITIAL_DANGER_CHANCE,
    INITIAL_MAX_SPAWN,
    INITIAL_MIN_SPAWN,
    JOIN_COUNTDOWN_SECONDS,
    MAX_SPAWN_FLOOR,
    MAX_SPAWN_STEP,
    MIN_SPAWN_FLOOR,
    MIN_SPAWN_STEP,
    SPAWN_WINDOW_MIN_GAP,
    TICK_SECONDS,
    TUTORIAL_PHASE_SCHEDULE,
)
from .runtime_results import build_game_over_payload
from .runtime_utils import monotonic_ms
from .spawner import expire_mole, hide_event, next_spawn_delay_seconds, spawn_event, spawn_mole

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import GameRuntime
    from .runtime_types import RoomRuntime


def ramp_difficulty(room: "RoomRuntime") -> None:
    room.min_spawn = max(MIN_SPAWN_FLOOR, room.min_spawn - MIN_SPAWN_STEP)
    room.max_spawn = max(MAX_SPAWN_FLOOR, room.max_spawn - MAX_SPAWN_STEP)
    if room.max_spawn < room.min_spawn + SPAWN_WINDOW_MIN_GAP:
        room.max_spawn = room.min_spawn + SPAWN_WINDOW_MIN_GAP
    room.danger_chance = min(DANGER_CHANCE_CAP, room.danger_chance + DANGER_CHANCE_STEP)


def reset_game_state(room: "RoomRuntime", duration_s: int) -> None:
    room.scores = {"host": 0, "guest": 0}
    room.holes = [None] * HOLE_COUNT
    room.helmet_hits = {}
    room.time_left = duration_s
    room.started_at_ms = monotonic_ms()
    room.min_spawn = INITIAL_MIN_SPAWN
    room.max_spawn = INITIAL_MAX_SPAWN
    room.danger_chance = INITIAL_DANGER_CHANCE
    room.tutorial_phase = 0


def _can_start(room: "RoomRuntime") -> bool:
    return room.phase == "countdown" and room.host is not None and room.has_opponent()


async def begin_countdown(runtime: "GameRuntime", room: "RoomRuntime", *, with_bot: bool) -> None:
    room.phase = "countdown"
    delay = BOT_COUNTDOWN_SECONDS if with_bot else JOIN_COUNTDOWN_SECONDS

    async def start_when_ready(inner_room: "RoomRuntime") -> None:
        if not _can_start(inner_room) or not runtime.registry_holds(inner_room):
            logger.info("Countdown for room %s lapsed without both seats", inner_room.code)
            return
        await start_game(runtime, inner_room)

    runtime._schedule_once(room, "startCountdown", delay, start_when_ready)


async def start_game(runtime: "GameRuntime", room: "RoomRuntime") -> None:
    runtime._clear_timers(room)
    reset_game_state(room, runtime.game_duration_s)
    room.phase = "active"

    if room.host is not None:
        await runtime._send_to(room.host, {"type": "game_start", "role": "host"})
    if room.guest is not None:
        await runtime._send_to(room.guest, {"type": "game_start", "role": "guest"})

    runtime._schedule_repeating(room, "countdown", lambda: TICK_SECONDS, runtime._tick_countdown)
    runtime._schedule_repeating(
        room,
        "difficulty",
        lambda: DIFFICULTY_RAMP_SECONDS,
        runtime._ramp_difficulty,
    )
    for phase_value, at_seconds in TUTORIAL_PHASE_SCHEDULE:
        runtime._schedule_once(
            room,
            f"tutorial{phase_value}",
            at_seconds,
            _tutorial_advance(phase_value),
        )
    runtime._schedule_repeating(
        room,
        "spawn",
        lambda: next_spawn_delay_seconds(room, runtime.rng),
        runtime._spawn_next,
    )
    if room.bot is not None:
        bot = room.bot
        runtime._schedule_repeating(room, "bot", lambda: bot.tick_interval_s, runtime._bot_tick)

    runtime._increment_stat("gamesStarted")
    if room.bot is not None:
        runtime._increment_stat("botGames")
    runtime._log_ws_event(
        "game_start",
        roomId=room.code,
        opponent="bot" if room.bot is not None else "human",
        duration=room.time_left,
    )


def _tutorial_advance(phase_value: int):
    async def advance(room: "RoomRuntime") -> None:
        if not room.active:
            return
        room.tutorial_phase = max(room.tutorial_phase, phase_value)

    return advance


async def tick_countdown(runtime: "GameRuntime", room: "RoomRuntime") -> bool:
    if not room.active:
        return False
    if room.time_left > 0:
        room.time_left -= 1
    await runtime._broadcast(room, {"type": "timer_sync", "timeLeft": room.time_left})
    if room.time_left <= 0:
        await end_game(runtime, room)
        return False
    return True


async def ramp_room_difficulty(runtime: "GameRuntime", room: "RoomRuntime") -> bool:
    if not room.active:
        return False
    ramp_difficulty(room)
    logger.debug(
        "Difficulty ramp room=%s min=%.2f max=%.2f danger=%.2f",
        room.code,
        room.min_spawn,
        room.max_spawn,
        room.danger_chance,
    )
    return True


async def spawn_next(runtime: "GameRuntime", room: "RoomRuntime") -> bool:
    if not room.active:
        return False
    spawned = spawn_mole(room, runtime.rng, runtime.time_scale)
    if spawned is None:
        return True
    index, mole, lifespan = spawned
    await runtime._broadcast(room, spawn_event(index, mole))

    async def hide_if_unchanged(inner_room: "RoomRuntime") -> None:
        if not inner_room.active:
            return
        if expire_mole(inner_room, index, mole.mole_id):
            await runtime._broadcast(inner_room, hide_event(index))

    runtime._schedule_once(room, f"expire:{index}", lifespan, hide_if_unchanged)
    return True


async def bot_tick(runtime: "GameRuntime", room: "RoomRuntime") -> bool:
    bot = room.bot
    if bot is None or not room.active:
        return False

    target = bot.choose_target(room.holes)
    if target is None:
        return True

    events = await runtime._apply_whack(room, "guest", target)
    if events and room.host is not None:
        await runtime._send_to(
            room.host,
            {"type": "opponent_hands", "positions": bot.hand_positions(target)},
        )
    return room.active


async def end_game(runtime: "GameRuntime", room: "RoomRuntime") -> bool:
    if room.phase != "active":
        return False
    room.phase = "ended"
    runtime._clear_timers(room)
    payload = build_game_over_payload(room)
    await runtime._broadcast(room, payload)
    runtime._increment_stat("gamesFinished")
    runtime._log_ws_event(
        "game_over",
        roomId=room.code,
        winner=payload["winner"],
        hostScore=room.scores["host"],
        guestScore=room.scores["guest"],
        timeLeft=payload["timeLeft"],
    )
    return True
