from __future__ import annotations

import random

from .runtime_constants import (
    DANGER_LIFESPAN_SECONDS,
    HELMET_SPLIT_NORMAL_SHARE,
    MOLE_LIFESPAN_RANGE,
)
from .runtime_types import Mole, MoleType, RoomRuntime
from .runtime_utils import monotonic_ms


def choose_mole_type(tutorial_phase: int, danger_chance: float, rng: random.Random) -> MoleType:
    if tutorial_phase <= 0:
        return "normal"
    if tutorial_phase == 1:
        return "normal" if rng.random() < 0.5 else "helmet"
    if rng.random() < danger_chance:
        return "danger"
    return "normal" if rng.random() < HELMET_SPLIT_NORMAL_SHARE else "helmet"


def mole_lifespan_seconds(mole_type: MoleType, rng: random.Random) -> float:
    if mole_type == "danger":
        return DANGER_LIFESPAN_SECONDS
    low, high = MOLE_LIFESPAN_RANGE
    return rng.uniform(low, high)


def next_spawn_delay_seconds(room: RoomRuntime, rng: random.Random) -> float:
    return rng.uniform(room.min_spawn, room.max_spawn)


def pick_empty_hole(holes: list[Mole | None], rng: random.Random) -> int | None:
    empties = [index for index, mole in enumerate(holes) if mole is None]
    if not empties:
        return None
    return rng.choice(empties)


def spawn_mole(
    room: RoomRuntime,
    rng: random.Random,
    time_scale: float = 1.0,
) -> tuple[int, Mole, float] | None:
    """Place a new mole into a random empty hole.

    Returns the hole index, the mole and its lifespan in game seconds, or None
    when every hole is occupied.
    """
    index = pick_empty_hole(room.holes, rng)
    if index is None:
        return None

    mole_type = choose_mole_type(room.tutorial_phase, room.danger_chance, rng)
    lifespan = mole_lifespan_seconds(mole_type, rng)
    room.spawn_seq += 1
    spawned_at = monotonic_ms()
    mole = Mole(
        mole_id=room.spawn_seq,
        mole_type=mole_type,
        spawned_at_ms=spawned_at,
        expires_at_ms=spawned_at + int(lifespan * time_scale * 1000),
    )
    room.holes[index] = mole
    if mole_type == "helmet":
        room.helmet_hits[index] = {"host": 0, "guest": 0}
    else:
        room.helmet_hits.pop(index, None)
    return index, mole, lifespan


def expire_mole(room: RoomRuntime, index: int, mole_id: int) -> bool:
    """Clear hole ``index`` if it still holds the mole that was scheduled to expire."""
    if index < 0 or index >= len(room.holes):
        return False
    current = room.holes[index]
    if current is None or current.mole_id != mole_id:
        return False
    room.holes[index] = None
    room.helmet_hits.pop(index, None)
    return True


def spawn_event(index: int, mole: Mole) -> dict[str, object]:
    return {"type": "spawn_mole", "index": index, "moleType": mole.mole_type}


def hide_event(index: int) -> dict[str, object]:
    return {"type": "hide_mole", "index": index}
