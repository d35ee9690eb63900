"""Hit resolution shared by human seats and the bot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .runtime_constants import (
    DANGER_POINTS,
    HELMET_BREAK_POINTS,
    HELMET_CHIP_POINTS,
    NORMAL_POINTS,
)
from .runtime_types import Mole, MoleType, RoomRuntime, Seat


@dataclass(frozen=True)
class WhackOutcome:
    mole_type: MoleType
    points: int
    consumed: bool
    damaged: bool = False


def resolve_whack(mole: Mole | None, prior_hits: int = 0) -> WhackOutcome | None:
    """Score a hit against ``mole``.

    ``prior_hits`` is the acting seat's recorded hit count on this helmet
    mole. Returns None for an empty hole.
    """
    if mole is None:
        return None

    if mole.mole_type == "normal":
        return WhackOutcome(mole_type="normal", points=NORMAL_POINTS, consumed=True)

    if mole.mole_type == "helmet":
        if prior_hits == 0:
            return WhackOutcome(
                mole_type="helmet",
                points=HELMET_CHIP_POINTS,
                consumed=False,
                damaged=True,
            )
        return WhackOutcome(mole_type="helmet", points=HELMET_BREAK_POINTS, consumed=True)

    return WhackOutcome(mole_type="danger", points=DANGER_POINTS, consumed=True)


def apply_whack(room: RoomRuntime, seat: Seat, index: int) -> list[dict[str, Any]]:
    """Apply ``seat``'s hit on hole ``index`` and return the events to broadcast."""
    if not room.active:
        return []
    if index < 0 or index >= len(room.holes):
        return []

    mole = room.holes[index]
    prior_hits = 0
    if mole is not None and mole.mole_type == "helmet":
        counters = room.helmet_hits.setdefault(index, {"host": 0, "guest": 0})
        prior_hits = counters[seat]
        counters[seat] = prior_hits + 1

    outcome = resolve_whack(mole, prior_hits)
    if outcome is None:
        return []

    events: list[dict[str, Any]] = []
    if outcome.damaged:
        events.append({"type": "helmet_damaged", "index": index})

    if outcome.points != 0:
        room.scores[seat] += outcome.points
        events.append(
            {
                "type": "score_update",
                "scores": dict(room.scores),
                "whacker": seat,
                "holeIndex": index,
                "points": outcome.points,
                "moleType": outcome.mole_type,
            }
        )

    if outcome.consumed:
        room.holes[index] = None
        room.helmet_hits.pop(index, None)
        events.append({"type": "hide_mole", "index": index, "whacker": seat})

    return events
