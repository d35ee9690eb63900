import asyncio
import random

import pytest
from starlette.websockets import WebSocketState

from moleduel.registry import RoomRegistry
from moleduel.runtime import GameRuntime
from moleduel.runtime_phase_flow import reset_game_state
from moleduel.runtime_types import Mole, RoomRuntime, SeatConnection


class FakeWebSocket:
    """Records JSON frames the server sends."""

    def __init__(self):
        self.sent = []
        self.client_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        self.sent.append(data)

    def of_type(self, message_type):
        return [message for message in self.sent if message.get("type") == message_type]

    def types(self):
        return [message.get("type") for message in self.sent]


class ScriptedSocket(FakeWebSocket):
    """Feeds queued ASGI frames to ``GameRuntime.handle_websocket``."""

    def __init__(self):
        super().__init__()
        self.inbound = asyncio.Queue()

    async def accept(self):
        pass

    async def receive(self):
        return await self.inbound.get()

    def push_text(self, text):
        self.inbound.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, payload):
        self.inbound.put_nowait({"type": "websocket.receive", "bytes": payload})

    def push_close(self, code=1000):
        self.inbound.put_nowait({"type": "websocket.disconnect", "code": code})


class StubRandom(random.Random):
    """random() pops scripted values; choice() picks scripted positions."""

    def __init__(self, values=(), picks=()):
        super().__init__(0)
        self.values = list(values)
        self.picks = list(picks)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return 0.0

    def choice(self, seq):
        if self.picks:
            return seq[self.picks.pop(0) % len(seq)]
        return seq[0]


_connection_counter = 0


def make_connection():
    global _connection_counter
    _connection_counter += 1
    return SeatConnection(connection_id=f"conn-{_connection_counter}", websocket=FakeWebSocket())


def make_mole(mole_id, mole_type="normal"):
    return Mole(mole_id=mole_id, mole_type=mole_type, spawned_at_ms=0, expires_at_ms=0)


def make_active_room(code="TEST", duration=60):
    room = RoomRuntime(code=code, host=make_connection(), guest=make_connection())
    room.host.room_code = code
    room.host.seat = "host"
    room.guest.room_code = code
    room.guest.seat = "guest"
    reset_game_state(room, duration)
    room.phase = "active"
    return room


async def wait_for(predicate, timeout=3.0, interval=0.005):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def stub_random():
    return StubRandom


@pytest.fixture
def connection_factory():
    return make_connection


@pytest.fixture
def socket_factory():
    return ScriptedSocket


@pytest.fixture
def mole_factory():
    return make_mole


@pytest.fixture
def active_room():
    return make_active_room()


@pytest.fixture
def waiter():
    return wait_for


@pytest.fixture
async def fast_runtime():
    rng = random.Random(1234)
    game_runtime = GameRuntime(
        registry=RoomRegistry(rng),
        rng=rng,
        game_duration_s=60,
        time_scale=0.01,
    )
    yield game_runtime
    await game_runtime.shutdown()


@pytest.fixture
async def slow_runtime():
    # Real-time cadence: nothing scheduled fires during a short test body.
    rng = random.Random(99)
    game_runtime = GameRuntime(
        registry=RoomRegistry(rng),
        rng=rng,
        game_duration_s=60,
        time_scale=1.0,
    )
    yield game_runtime
    await game_runtime.shutdown()
