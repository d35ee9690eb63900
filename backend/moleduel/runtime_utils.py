from __future__ import annotations

import random
import time
import uuid
from typing import Any

from .runtime_constants import HOLE_COUNT, ROOM_CODE_CHARS, ROOM_CODE_LENGTH


def now_ms() -> int:
    return int(time.time() * 1000)


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def random_room_code(rng: random.Random | None = None, length: int = ROOM_CODE_LENGTH) -> str:
    chooser = rng or random
    return "".join(chooser.choice(ROOM_CODE_CHARS) for _ in range(length))


def sanitize_room_code(raw: Any) -> str:
    value = str(raw or "").upper()
    filtered = "".join(ch for ch in value if ch.isalnum())
    return filtered[:8]


def parse_hole_index(raw: Any) -> int | None:
    # bool is an int subclass; a JSON true must not read as hole 1
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    if not isinstance(raw, int):
        return None
    if raw < 0 or raw >= HOLE_COUNT:
        return None
    return raw
