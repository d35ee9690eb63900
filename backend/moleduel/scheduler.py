"""Named per-room timers.

Every delayed or periodic activity of a room lives in ``room.timers`` under a
name, so teardown can cancel all of them as a unit. Callbacks always run under
``room.lock`` and must re-validate room state themselves: cancellation is
best-effort and a callback may already be waiting on the lock when the room is
torn down.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .runtime_types import RoomRuntime

logger = logging.getLogger(__name__)

OneShotCallback = Callable[[RoomRuntime], Awaitable[None]]
# A repeating callback returns False to end its own loop.
RepeatingCallback = Callable[[RoomRuntime], Awaitable[bool]]
DelaySource = Callable[[], float]

MIN_DELAY_SECONDS = 0.001


def cancel_timer(room: RoomRuntime, key: str) -> None:
    task = room.timers.get(key)
    if task and not task.done() and task is not asyncio.current_task():
        task.cancel()
    room.timers[key] = None


def clear_timers(room: RoomRuntime) -> None:
    for key in list(room.timers):
        cancel_timer(room, key)
    room.timers.clear()


def active_timer_names(room: RoomRuntime) -> list[str]:
    return sorted(key for key, task in room.timers.items() if task is not None and not task.done())


def schedule_once(
    room: RoomRuntime,
    key: str,
    delay_s: float,
    callback: OneShotCallback,
) -> asyncio.Task[None]:
    cancel_timer(room, key)
    delay = max(MIN_DELAY_SECONDS, delay_s or 0)

    async def runner() -> None:
        try:
            await asyncio.sleep(delay)
            async with room.lock:
                if room.timers.get(key) is not asyncio.current_task():
                    return
                room.timers[key] = None
                await callback(room)
        except asyncio.CancelledError:
            return
        except Exception:
            logger.exception("Timer %s crashed for room %s", key, room.code)

    task = asyncio.create_task(runner(), name=f"{room.code}:{key}")
    room.timers[key] = task
    return task


def schedule_repeating(
    room: RoomRuntime,
    key: str,
    next_delay: DelaySource,
    callback: RepeatingCallback,
) -> asyncio.Task[None]:
    """Run ``callback`` after every ``next_delay()`` seconds until it returns False.

    The delay source is consulted before each wait, so a caller can vary the
    period over the lifetime of the loop.
    """
    cancel_timer(room, key)

    async def runner() -> None:
        try:
            while True:
                await asyncio.sleep(max(MIN_DELAY_SECONDS, next_delay() or 0))
                async with room.lock:
                    if room.timers.get(key) is not asyncio.current_task():
                        return
                    keep_going = await callback(room)
                    if not keep_going:
                        room.timers[key] = None
                        return
        except asyncio.CancelledError:
            return
        except Exception:
            logger.exception("Timer %s crashed for room %s", key, room.code)

    task = asyncio.create_task(runner(), name=f"{room.code}:{key}")
    room.timers[key] = task
    return task
