from __future__ import annotations

HOLE_COUNT = 7
ROOM_CODE_LENGTH = 4
ROOM_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

JOIN_COUNTDOWN_SECONDS = 3.0
BOT_COUNTDOWN_SECONDS = 2.0
TICK_SECONDS = 1.0
DIFFICULTY_RAMP_SECONDS = 15.0
TUTORIAL_PHASE_SCHEDULE: tuple[tuple[int, float], ...] = ((1, 10.0), (2, 25.0))

INITIAL_MIN_SPAWN = 1.0
INITIAL_MAX_SPAWN = 3.0
INITIAL_DANGER_CHANCE = 0.2
MIN_SPAWN_FLOOR = 0.5
MAX_SPAWN_FLOOR = 1.0
SPAWN_WINDOW_MIN_GAP = 0.1
MIN_SPAWN_STEP = 0.1
MAX_SPAWN_STEP = 0.15
DANGER_CHANCE_STEP = 0.02
DANGER_CHANCE_CAP = 0.4

DANGER_LIFESPAN_SECONDS = 2.5
MOLE_LIFESPAN_RANGE = (1.5, 3.0)
HELMET_SPLIT_NORMAL_SHARE = 0.55

NORMAL_POINTS = 10
HELMET_CHIP_POINTS = 10
HELMET_BREAK_POINTS = 20
DANGER_POINTS = -5

BOT_TICK_RANGE = (0.6, 1.2)
BOT_WHACK_CHANCE = 0.8
BOT_DANGER_CAUTION = 0.9
BOT_HAND_JITTER = 0.05
HOLE_ANCHORS: tuple[tuple[float, float], ...] = (
    (0.08, 0.28),
    (0.08, 0.62),
    (0.92, 0.28),
    (0.92, 0.62),
    (0.25, 0.82),
    (0.50, 0.85),
    (0.75, 0.82),
)

STUN_SERVERS: tuple[dict[str, str], ...] = (
    {"urls": "stun:stun.l.google.com:19302"},
    {"urls": "stun:stun1.l.google.com:19302"},
)

ERROR_ROOM_NOT_FOUND = "Room not found"
ERROR_ROOM_FULL = "Room is full"
ERROR_OWN_ROOM = "Cannot join your own room"
