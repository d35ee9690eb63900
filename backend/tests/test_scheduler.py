import asyncio

from moleduel.runtime_types import RoomRuntime
from moleduel.scheduler import (
    active_timer_names,
    cancel_timer,
    clear_timers,
    schedule_once,
    schedule_repeating,
)


def make_room():
    return RoomRuntime(code="TMRS", host=None)


async def test_one_shot_fires_once_under_the_room_lock(waiter):
    room = make_room()
    fired = []

    async def callback(inner_room):
        fired.append(inner_room.lock.locked())

    schedule_once(room, "ping", 0.01, callback)

    assert await waiter(lambda: fired == [True])
    await asyncio.sleep(0.03)
    assert fired == [True]
    assert room.timers["ping"] is None


async def test_rescheduling_a_key_replaces_the_pending_task():
    room = make_room()
    fired = []

    async def first(_room):
        fired.append("first")

    async def second(_room):
        fired.append("second")

    schedule_once(room, "slot", 0.02, first)
    schedule_once(room, "slot", 0.02, second)
    await asyncio.sleep(0.08)

    assert fired == ["second"]


async def test_cancelled_one_shot_never_fires():
    room = make_room()
    fired = []

    async def callback(_room):
        fired.append(True)

    schedule_once(room, "late", 0.02, callback)
    cancel_timer(room, "late")
    await asyncio.sleep(0.06)

    assert fired == []


async def test_repeating_stops_when_callback_returns_false(waiter):
    room = make_room()
    ticks = []

    async def callback(_room):
        ticks.append(len(ticks) + 1)
        return len(ticks) < 3

    task = schedule_repeating(room, "tick", lambda: 0.005, callback)

    assert await waiter(task.done)
    assert ticks == [1, 2, 3]
    assert room.timers["tick"] is None


async def test_repeating_reads_the_delay_before_every_wait(waiter):
    room = make_room()
    delays = iter([0.001, 0.002, 0.003])
    consulted = []

    def next_delay():
        value = next(delays, 0.001)
        consulted.append(value)
        return value

    async def callback(_room):
        return len(consulted) < 3

    task = schedule_repeating(room, "vary", next_delay, callback)

    assert await waiter(task.done)
    assert consulted == [0.001, 0.002, 0.003]


async def test_clear_timers_cancels_everything():
    room = make_room()
    fired = []

    async def once(_room):
        fired.append("once")

    async def repeat(_room):
        fired.append("repeat")
        return True

    schedule_once(room, "a", 0.02, once)
    schedule_repeating(room, "b", lambda: 0.02, repeat)
    assert active_timer_names(room) == ["a", "b"]

    clear_timers(room)
    await asyncio.sleep(0.06)

    assert fired == []
    assert room.timers == {}
    assert active_timer_names(room) == []


async def test_callback_can_clear_its_own_timer_without_cancelling_itself(waiter):
    room = make_room()
    finished = []

    async def teardown(inner_room):
        clear_timers(inner_room)
        await asyncio.sleep(0)
        finished.append(True)
        return False

    task = schedule_repeating(room, "self", lambda: 0.005, teardown)

    assert await waiter(task.done)
    assert finished == [True]
    assert not task.cancelled()


async def test_crashing_callback_is_contained(waiter):
    room = make_room()

    async def boom(_room):
        raise RuntimeError("boom")

    task = schedule_repeating(room, "boom", lambda: 0.001, boom)

    assert await waiter(task.done)
    assert task.exception() is None
