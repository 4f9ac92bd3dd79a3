# tests/test_time_codec.py
import pytest

from timetable_backend.time_codec import (
    DAY_SECONDS,
    NO_DEPARTURE,
    NO_TIME_TEXT,
    add_zero_time,
    adjusted_for_timetable,
    calculate_ride_time,
    countdown,
    hhmmss_to_mmss,
    hhmmss_to_ss,
    minus_hhmm,
    minus_hhmmss,
    mmss_to_ss,
    over_time,
    parse_int,
    plus_hhmm,
    ss_to_hhmmss,
    ss_to_mmss,
    string_time,
    timetable_components,
    timetable_hour,
)


def test_add_zero_time_pads_single_digits():
    assert add_zero_time(0) == "00"
    assert add_zero_time(5) == "05"
    assert add_zero_time(10) == "10"
    assert add_zero_time(25) == "25"


@pytest.mark.parametrize(
    "a, b",
    [(0, 0), (120000, 80000), (80000, 120000), (235959, 0), (0, 235959), (81530, 81529)],
)
def test_minus_hhmmss_is_within_one_day(a, b):
    assert 0 <= minus_hhmmss(a, b) < DAY_SECONDS


def test_minus_hhmmss_of_equal_values_is_zero():
    for value in (0, 81500, 235959):
        assert minus_hhmmss(value, value) == 0


def test_minus_hhmmss_wraps_to_next_day():
    # 23:59:00 → 00:01:00 は 2分後
    assert minus_hhmmss(100, 235900) == 120
    assert minus_hhmmss(81000, 80000) == 600


def test_timetable_hour_maps_early_morning_to_next_day():
    assert [timetable_hour(h) for h in range(4)] == [24, 25, 26, 27]
    for hour in range(4, 26):
        assert timetable_hour(hour) == hour


def test_second_conversions():
    assert hhmmss_to_ss(10203) == 3723
    assert ss_to_hhmmss(3723) == 10203
    assert mmss_to_ss(1005) == 605
    assert ss_to_mmss(605) == 1005
    assert hhmmss_to_mmss(10203) == 6203


def test_plus_and_minus_hhmm():
    assert plus_hhmm(850, 15) == 905
    assert plus_hhmm(2350, 20) == 2410
    assert minus_hhmm(905, 15) == 850
    # a < b は翌日扱い
    assert minus_hhmm(5, 10) == 2355


def test_over_time_clamps_to_2700():
    assert over_time(2710, 2650) == NO_DEPARTURE
    assert over_time(830, 810) == 830
    assert over_time(15, NO_DEPARTURE) == NO_DEPARTURE


def test_string_time():
    assert string_time(805) == "08:05"
    assert string_time(2530) == "25:30"
    assert string_time(NO_DEPARTURE) == NO_TIME_TEXT
    # 分の繰り上がり
    assert string_time(875) == "09:15"


def test_countdown_text():
    assert countdown(930) == "09:30"
    assert countdown(0) == "00:00"
    assert countdown(10000) == NO_TIME_TEXT
    assert countdown(-1) == NO_TIME_TEXT


class TestParseInt:
    def test_zero_is_a_valid_value(self):
        assert parse_int("0").ok
        assert parse_int("00").value == 0
        assert parse_int("00").status == "ok"

    def test_absent_and_malformed_are_distinguished(self):
        assert parse_int(None, 7).status == "absent"
        assert parse_int("  ", 7).value == 7
        malformed = parse_int("1a", 7)
        assert malformed.status == "malformed"
        assert malformed.value == 7


def test_adjusted_for_timetable():
    assert adjusted_for_timetable("00:15") == "24:15"
    assert adjusted_for_timetable("3:05") == "27:05"
    assert adjusted_for_timetable("08:15") == "08:15"
    assert adjusted_for_timetable("garbage") == "garbage"


def test_timetable_components_drops_empty_tokens():
    assert timetable_components(" 05  10 15 ") == ["05", "10", "15"]
    assert timetable_components("") == []


def test_calculate_ride_time():
    assert calculate_ride_time("08:10", "08:28") == 18
    assert calculate_ride_time("23:50", "00:10") == 20
    assert calculate_ride_time("08:10", "") == 0
