from __future__ import annotations

import asyncio
import random
from typing import Callable

from .runtime_types import RoomRuntime
from .runtime_utils import random_room_code


class RoomRegistry:
    """Live rooms keyed by code.

    Creation and eviction go through ``lock``; room state itself is guarded
    by each room's own lock.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rooms: dict[str, RoomRuntime] = {}
        self.lock = asyncio.Lock()
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.rooms)

    def __contains__(self, code: object) -> bool:
        return code in self.rooms

    def _generate_code(self) -> str:
        code = random_room_code(self._rng)
        while code in self.rooms:
            code = random_room_code(self._rng)
        return code

    async def create(self, factory: Callable[[str], RoomRuntime]) -> RoomRuntime:
        async with self.lock:
            code = self._generate_code()
            room = factory(code)
            self.rooms[code] = room
            return room

    async def get(self, code: str) -> RoomRuntime | None:
        async with self.lock:
            return self.rooms.get(code)

    async def remove(self, room: RoomRuntime) -> bool:
        async with self.lock:
            if self.rooms.get(room.code) is not room:
                return False
            self.rooms.pop(room.code, None)
            return True

    async def replace(self, current: RoomRuntime, fresh: RoomRuntime) -> bool:
        """Swap ``current`` for ``fresh`` under the same code if it is still live."""
        async with self.lock:
            if self.rooms.get(current.code) is not current or fresh.code != current.code:
                return False
            self.rooms[fresh.code] = fresh
            return True

    async def drain(self) -> list[RoomRuntime]:
        async with self.lock:
            rooms = list(self.rooms.values())
            self.rooms.clear()
            return rooms

    def snapshot(self) -> list[RoomRuntime]:
        return list(self.rooms.values())
