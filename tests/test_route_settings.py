# tests/test_route_settings.py
import pytest
from pydantic import ValidationError

from timetable_backend import route_settings as rs
from timetable_backend.route_settings import LineKind, LineSettings, RouteSettings, TransferSettings


def test_defaults_without_keys(memory_store):
    assert rs.line_name(memory_store, "go1", 0) == "Line 1"
    assert rs.ride_time(memory_store, "go1", 2) == 0
    assert rs.line_color(memory_store, "go1", 0) == rs.ACCENT_COLOR
    assert rs.line_kind(memory_store, "go1", 0) is LineKind.RAILWAY
    assert rs.transportation(memory_store, "go1", 0) == "Walking"
    assert rs.change_line(memory_store, "go1") == 0
    assert not rs.show_route2(memory_store, "go1")


def test_endpoints_swap_for_return_route(memory_store):
    memory_store.set_string("departurepoint", "Home")
    memory_store.set_string("destination", "Office")
    assert rs.departure_point(memory_store, "go1") == "Home"
    assert rs.destination(memory_store, "go1") == "Office"
    assert rs.departure_point(memory_store, "back1") == "Office"
    assert rs.destination(memory_store, "back1") == "Home"


def test_int_stored_as_string_is_read(memory_store):
    memory_store.set_string("go1transfertimee", "7")
    assert rs.transfer_time(memory_store, "go1", 0) == 7


def test_bool_values(memory_store):
    rs.write_bool(memory_store, "go1route2flag", True)
    assert memory_store.data["go1route2flag"] == "true"
    assert rs.show_route2(memory_store, "go1")
    memory_store.set_string("go1route2flag", "maybe")
    assert not rs.show_route2(memory_store, "go1")


def test_parse_line_kind():
    assert rs.parse_line_kind("BUS") is LineKind.BUS
    assert rs.parse_line_kind("bus") is LineKind.BUS
    assert rs.parse_line_kind("RAIL") is LineKind.RAILWAY
    assert rs.parse_line_kind(None) is LineKind.RAILWAY


def test_line_settings_round_trip(memory_store):
    settings = LineSettings(
        operator_name="JR East",
        line_name="Chuo Line",
        line_color="#F58220",
        line_kind=LineKind.RAILWAY,
        line_selected=True,
        depart_station="Mitaka",
        arrive_station="Shinjuku",
        ride_time=18,
    )
    rs.save_line_settings(memory_store, "go1", 1, settings)
    assert memory_store.data["go1linename2"] == "Chuo Line"
    assert memory_store.data["go1ridetime2"] == 18
    assert rs.load_line_settings(memory_store, "go1", 1) == settings


def test_transfer_and_route_settings(memory_store):
    rs.save_transfer_settings(memory_store, "back2", 0, TransferSettings(transportation="Bicycle", transfer_time=12))
    assert memory_store.data["back2transporte"] == "Bicycle"
    assert rs.transfer_time_array(memory_store, "back2") == [12, 0, 0, 0]

    rs.save_route_settings(
        memory_store, "back2",
        RouteSettings(departure_point="Office", destination="Home", show_route2=True, change_line=2),
    )
    loaded = rs.load_route_settings(memory_store, "back2")
    assert loaded.change_line == 2
    assert loaded.show_route2
    assert memory_store.data["destination"] == "Office"


def test_change_line_is_bounded():
    with pytest.raises(ValidationError):
        RouteSettings(departure_point="Home", destination="Office", change_line=3)


def test_station_array(memory_store):
    memory_store.set_string("go1departstation1", "Mitaka")
    memory_store.set_string("go1arrivestation1", "Shinjuku")
    assert rs.station_array(memory_store, "go1")[:3] == ["Mitaka", "Shinjuku", "Dep. St. 2"]


def test_operator_line_list(memory_store):
    lines = [{"code": "odpt.Railway:JR-East.ChuoRapid", "name": "Chuo Rapid"}]
    rs.save_operator_line_list(memory_store, "go1", 0, lines)
    assert rs.load_operator_line_list(memory_store, "go1", 0) == lines
    memory_store.set_string("go1linestoplist1", "not json")
    assert rs.load_line_stop_list(memory_store, "go1", 0) is None
