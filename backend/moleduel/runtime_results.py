from __future__ import annotations

from typing import Any

from .runtime_types import RoomRuntime, Seat, Winner


def winner_for(scores: dict[Seat, int]) -> Winner:
    host_score = int(scores.get("host", 0))
    guest_score = int(scores.get("guest", 0))
    if host_score > guest_score:
        return "host"
    if guest_score > host_score:
        return "guest"
    return "tie"


def build_game_over_payload(room: RoomRuntime) -> dict[str, Any]:
    return {
        "type": "game_over",
        "scores": dict(room.scores),
        "timeLeft": max(0, room.time_left),
        "winner": winner_for(room.scores),
    }


def build_room_summary(room: RoomRuntime) -> dict[str, Any]:
    return {
        "code": room.code,
        "phase": room.phase,
        "host": room.host is not None,
        "guest": "bot" if room.bot is not None else room.guest is not None,
        "scores": dict(room.scores),
        "timeLeft": max(0, room.time_left),
        "tutorialPhase": room.tutorial_phase,
        "occupiedHoles": sum(1 for mole in room.holes if mole is not None),
    }
