import random

import pytest

from moleduel.bot import ScriptedBot
from moleduel.runtime_constants import HOLE_ANCHORS, HOLE_COUNT


def empty_holes():
    return [None] * HOLE_COUNT


def test_tick_interval_is_chosen_once_within_range():
    for seed in range(50):
        bot = ScriptedBot(random.Random(seed))
        assert 0.6 <= bot.tick_interval_s <= 1.2


def test_no_target_when_every_hole_is_empty(stub_random):
    bot = ScriptedBot(stub_random([0.5]))
    assert bot.choose_target(empty_holes()) is None


def test_targets_an_occupied_hole(stub_random, mole_factory):
    holes = empty_holes()
    holes[2] = mole_factory(1, "normal")
    holes[5] = mole_factory(2, "helmet")
    bot = ScriptedBot(stub_random([0.5, 0.1], picks=[1]))

    assert bot.choose_target(holes) == 5


def test_sometimes_idles(stub_random, mole_factory):
    holes = empty_holes()
    holes[0] = mole_factory(1)
    bot = ScriptedBot(stub_random([0.5, 0.85]))

    assert bot.choose_target(holes) is None


@pytest.mark.parametrize(("caution_roll", "expected"), [(0.2, None), (0.95, 3)])
def test_mostly_avoids_danger(stub_random, mole_factory, caution_roll, expected):
    holes = empty_holes()
    holes[3] = mole_factory(1, "danger")
    bot = ScriptedBot(stub_random([0.5, 0.1, caution_roll]))

    assert bot.choose_target(holes) == expected


def test_danger_avoidance_rate(mole_factory):
    bot = ScriptedBot(random.Random(42))
    holes = empty_holes()
    holes[1] = mole_factory(1, "danger")
    hits = sum(1 for _ in range(5000) if bot.choose_target(holes) == 1)

    # 80% whack chance times 10% boldness
    assert 250 < hits < 550


def test_hand_positions_jitter_around_the_anchor():
    bot = ScriptedBot(random.Random(7))
    for index, (anchor_x, anchor_y) in enumerate(HOLE_ANCHORS):
        positions = bot.hand_positions(index)
        assert len(positions) == 2
        for point in positions:
            assert abs(point["x"] - anchor_x) <= 0.05 + 1e-9
            assert abs(point["y"] - anchor_y) <= 0.05 + 1e-9
