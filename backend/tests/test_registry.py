import random

from moleduel.registry import RoomRegistry
from moleduel.runtime_constants import ROOM_CODE_CHARS
from moleduel.runtime_types import RoomRuntime
from moleduel.runtime_utils import random_room_code


def build_room(code):
    return RoomRuntime(code=code, host=None)


async def test_codes_use_the_unambiguous_alphabet():
    registry = RoomRegistry(random.Random(1))
    for _ in range(50):
        room = await registry.create(build_room)
        assert len(room.code) == 4
        assert set(room.code) <= set(ROOM_CODE_CHARS)
    assert not {"I", "O", "0", "1"} & set(ROOM_CODE_CHARS)


async def test_live_rooms_never_share_a_code():
    registry = RoomRegistry(random.Random(2))
    rooms = [await registry.create(build_room) for _ in range(300)]

    assert len({room.code for room in rooms}) == 300
    assert len(registry) == 300


async def test_collision_regenerates_the_code(stub_random):
    registry = RoomRegistry(stub_random(picks=[0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0]))

    first = await registry.create(build_room)
    second = await registry.create(build_room)

    assert first.code == "AAAA"
    assert second.code == "BAAA"


async def test_lookup_and_remove():
    registry = RoomRegistry(random.Random(3))
    room = await registry.create(build_room)

    assert await registry.get(room.code) is room
    assert room.code in registry
    assert await registry.remove(room) is True
    assert await registry.get(room.code) is None
    assert await registry.remove(room) is False


async def test_remove_ignores_a_different_room_with_the_same_code():
    registry = RoomRegistry(random.Random(4))
    room = await registry.create(build_room)
    impostor = RoomRuntime(code=room.code, host=None)

    assert await registry.remove(impostor) is False
    assert await registry.get(room.code) is room


async def test_drain_empties_the_registry():
    registry = RoomRegistry(random.Random(5))
    created = [await registry.create(build_room) for _ in range(3)]

    drained = await registry.drain()

    assert set(room.code for room in drained) == set(room.code for room in created)
    assert len(registry) == 0


async def test_replace_swaps_a_live_room_under_its_code():
    registry = RoomRegistry(random.Random(6))
    room = await registry.create(build_room)
    fresh = build_room(room.code)

    assert await registry.replace(room, fresh) is True
    assert await registry.get(room.code) is fresh
    assert len(registry) == 1

    assert await registry.replace(room, build_room(room.code)) is False
    assert await registry.get(room.code) is fresh
    assert await registry.replace(fresh, build_room("ZZZZ")) is False


def test_room_code_length_is_taken_as_given():
    rng = random.Random(7)

    assert len(random_room_code(rng)) == 4
    assert len(random_room_code(rng, length=2)) == 2
    assert len(random_room_code(rng, length=6)) == 6
