# tests/test_key_space.py
import itertools

import pytest

from timetable_backend import key_space as ks
from timetable_backend.calendar_types import HOLIDAY, SATURDAY_HOLIDAY, WEEKDAY, canonicalize


def test_line_keys_are_one_based():
    assert ks.line_name_key("go1", 0) == "go1linename1"
    assert ks.ride_time_key("back2", 2) == "back2ridetime3"
    assert ks.line_selected_key("go2", 1) == "go2lineSelected2"


def test_transfer_slot_zero_uses_e_suffix():
    assert ks.transfer_time_key("go1", 0) == "go1transfertimee"
    assert ks.transfer_time_key("go1", 1) == "go1transfertime1"
    assert ks.transportation_key("back1", 0) == "back1transporte"
    assert ks.transportation_key("back1", 3) == "back1transport3"


def test_endpoint_keys_swap_on_return_routes():
    assert ks.departure_point_key("go1") == "departurepoint"
    assert ks.destination_key("go1") == "destination"
    assert ks.departure_point_key("back1") == "destination"
    assert ks.destination_key("back2") == "departurepoint"


def test_timetable_keys():
    assert ks.timetable_key("go1", WEEKDAY, 0, 8) == "go1linename1weekday08"
    assert ks.timetable_ride_time_key("go1", WEEKDAY, 0, 8) == "go1linename1weekday08ridetime"
    assert ks.timetable_train_type_key("go1", SATURDAY_HOLIDAY, 1, 25) == "go1linename2weekend25traintype"
    assert ks.train_type_list_key("back1", HOLIDAY, 2) == "back1linename3holidaytraintypelist"


def test_specific_day_keys_do_not_collide_with_standard():
    specific = canonicalize("odpt.Calendar:Specific.Keio.Sp-100")
    assert ks.timetable_key("go1", specific, 0, 8) != ks.timetable_key("go1", HOLIDAY, 0, 8)


def test_line_keys_never_collide():
    builders = [
        ks.depart_station_key, ks.arrive_station_key, ks.depart_station_code_key,
        ks.arrive_station_code_key, ks.operator_name_key, ks.operator_code_key,
        ks.line_name_key, ks.line_selected_key, ks.line_color_key, ks.line_direction_key,
        ks.line_code_key, ks.line_kind_key, ks.ride_time_key, ks.operator_line_list_key,
        ks.line_stop_list_key, ks.calendar_types_cache_key,
    ]
    keys = [
        build(route, num)
        for build, route, num in itertools.product(builders, ks.ROUTE_DIRECTIONS, ks.LINE_SLOTS)
    ]
    assert len(keys) == len(set(keys))


def test_other_route():
    assert ks.other_route("go1") == "go2"
    assert ks.other_route("go2") == "go1"
    assert ks.other_route("back1") == "back2"
    assert ks.is_back("back2")
    assert not ks.is_back("go1")


def test_copy_source_keys():
    keys = ks.copy_source_keys("go1", WEEKDAY, 1, 8)
    assert keys == (
        "go1linename2weekday07",
        "go1linename2weekday09",
        "go1linename2holiday08",
        "go2linename1weekday08",
        "go2linename2weekday08",
        "go2linename3weekday08",
    )


def test_copy_source_options_boundaries():
    first = ks.copy_source_options("go1", WEEKDAY, 0, 4)
    assert not first[ks.COPY_PREVIOUS_HOUR].enabled
    assert first[ks.COPY_NEXT_HOUR].enabled

    last = ks.copy_source_options("go1", WEEKDAY, 0, 25)
    assert last[ks.COPY_PREVIOUS_HOUR].enabled
    assert not last[ks.COPY_NEXT_HOUR].enabled
    assert last[ks.COPY_PREVIOUS_HOUR].label == "24:00-"
    assert last[ks.COPY_OPPOSITE_CALENDAR].label == "Holiday"
    assert [o.index for o in last] == list(range(6))


@pytest.mark.parametrize("check, value", [
    (ks.check_route, "go3"),
    (ks.check_line, 3),
    (ks.check_transfer, 4),
    (ks.check_hour, 3),
    (ks.check_hour, 26),
])
def test_checks_reject_out_of_range(check, value):
    with pytest.raises(ValueError):
        check(value)
