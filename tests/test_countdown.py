# tests/test_countdown.py
from timetable_backend.countdown import (
    COUNTDOWN_COLORS,
    CountdownState,
    countdown_mmss,
    countdown_state,
    countdown_text,
    seconds_until,
)


def test_seconds_until():
    assert seconds_until(80000, 810) == 600
    # 発車済みなら翌日の同時刻まで
    assert seconds_until(81100, 810) == 86400 - 60


def test_countdown_text():
    assert countdown_text(80000, 810) == "10:00"
    assert countdown_text(80930, 810) == "00:30"
    assert countdown_text(60000, 810) == "--:--"


def test_countdown_text_shows_minutes_past_one_hour():
    assert countdown_text(64000, 800) == "80:00"
    assert countdown_text(62001, 800) == "99:59"
    assert countdown_text(62000, 800) == "--:--"


def test_countdown_mmss():
    assert countdown_mmss(80002, 810) == 958


def test_state_tiers():
    assert countdown_state(1000) is CountdownState.NORMAL
    assert countdown_state(958) is CountdownState.WARNING
    assert countdown_state(500) is CountdownState.WARNING
    assert countdown_state(498) is CountdownState.URGENT
    assert countdown_state(0) is CountdownState.URGENT


def test_odd_values_alternate_regardless_of_tier():
    for mmss in (1001, 959, 1):
        assert countdown_state(mmss) is CountdownState.ALTERNATE


def test_every_state_has_a_color():
    assert set(COUNTDOWN_COLORS) == set(CountdownState)
