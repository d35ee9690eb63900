"""Opponent policies that can occupy the guest seat.

A policy only decides; the runtime applies its choices through the same
whack path a human seat uses, so scoring never diverges between the two.
"""

from __future__ import annotations

import random
from typing import Protocol

from .runtime_constants import (
    BOT_DANGER_CAUTION,
    BOT_HAND_JITTER,
    BOT_TICK_RANGE,
    BOT_WHACK_CHANCE,
    HOLE_ANCHORS,
)
from .runtime_types import Mole


class OpponentPolicy(Protocol):
    name: str
    tick_interval_s: float

    def choose_target(self, holes: list[Mole | None]) -> int | None:
        ...

    def hand_positions(self, index: int) -> list[dict[str, float]]:
        ...


class ScriptedBot:
    name = "scripted"

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        whack_chance: float = BOT_WHACK_CHANCE,
        danger_caution: float = BOT_DANGER_CAUTION,
    ) -> None:
        self.rng = rng or random.Random()
        self.whack_chance = whack_chance
        self.danger_caution = danger_caution
        low, high = BOT_TICK_RANGE
        # Chosen once; the loop keeps this cadence for the whole match.
        self.tick_interval_s = self.rng.uniform(low, high)

    def choose_target(self, holes: list[Mole | None]) -> int | None:
        occupied = [index for index, mole in enumerate(holes) if mole is not None]
        if not occupied:
            return None
        if self.rng.random() >= self.whack_chance:
            return None

        target = self.rng.choice(occupied)
        mole = holes[target]
        if mole is not None and mole.mole_type == "danger" and self.rng.random() < self.danger_caution:
            return None
        return target

    def hand_positions(self, index: int) -> list[dict[str, float]]:
        anchor_x, anchor_y = HOLE_ANCHORS[index]
        return [
            {
                "x": anchor_x + self.rng.uniform(-BOT_HAND_JITTER, BOT_HAND_JITTER),
                "y": anchor_y + self.rng.uniform(-BOT_HAND_JITTER, BOT_HAND_JITTER),
            }
            for _ in range(2)
        ]
