from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from fastapi import WebSocket

if TYPE_CHECKING:
    from .bot import OpponentPolicy

Seat = Literal["host", "guest"]
Winner = Literal["host", "guest", "tie"]
MoleType = Literal["normal", "helmet", "danger"]
Phase = Literal["lobby", "countdown", "active", "ended"]


@dataclass
class SeatConnection:
    connection_id: str
    websocket: WebSocket
    room_code: str | None = None
    seat: Seat | None = None


@dataclass(frozen=True)
class Mole:
    mole_id: int
    mole_type: MoleType
    spawned_at_ms: int
    expires_at_ms: int


@dataclass
class RoomRuntime:
    code: str
    host: SeatConnection | None
    guest: SeatConnection | None = None
    bot: OpponentPolicy | None = None
    phase: Phase = "lobby"
    scores: dict[Seat, int] = field(default_factory=lambda: {"host": 0, "guest": 0})
    holes: list[Mole | None] = field(default_factory=list)
    time_left: int = 0
    started_at_ms: int = 0
    min_spawn: float = 0.0
    max_spawn: float = 0.0
    danger_chance: float = 0.0
    tutorial_phase: int = 0
    helmet_hits: dict[int, dict[Seat, int]] = field(default_factory=dict)
    spawn_seq: int = 0
    created_at_ms: int = 0
    timers: dict[str, asyncio.Task[None] | None] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def active(self) -> bool:
        return self.phase == "active"

    def connection_for(self, seat: Seat) -> SeatConnection | None:
        return self.host if seat == "host" else self.guest

    def opponent_of(self, seat: Seat) -> SeatConnection | None:
        return self.guest if seat == "host" else self.host

    def has_opponent(self) -> bool:
        return self.guest is not None or self.bot is not None
