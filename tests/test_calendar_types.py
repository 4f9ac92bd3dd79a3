# tests/test_calendar_types.py
from datetime import date

from timetable_backend.calendar_types import (
    HOLIDAY,
    SATURDAY,
    SATURDAY_HOLIDAY,
    SUNDAY,
    WEEKDAY,
    CalendarKind,
    CalendarType,
    alternate_tags_for_read,
    canonicalize,
    from_raw_value,
    from_tag_or_raw,
    opposite_for_copy,
    resolve_for_date,
)

WEDNESDAY = date(2025, 1, 22)
SATURDAY_DATE = date(2025, 1, 25)
SUNDAY_DATE = date(2025, 1, 26)


def test_standard_storage_tags():
    assert WEEKDAY.tag == "weekday"
    assert HOLIDAY.tag == "holiday"
    assert SATURDAY_HOLIDAY.tag == "weekend"
    assert SUNDAY.tag == "sunday"
    assert from_raw_value("odpt.Calendar:Monday").tag == "monday"


def test_specific_day_named_suffix():
    calendar = canonicalize("odpt.Calendar:Specific.Toei.Saturday")
    assert calendar.specific
    assert calendar.kind is CalendarKind.SATURDAY
    assert calendar.display_calendar_type() == SATURDAY


def test_specific_day_code_suffix():
    assert canonicalize("odpt.Calendar:Specific.Keio.Sp-100").kind is CalendarKind.HOLIDAY
    assert canonicalize("odpt.Calendar:Specific.Keio.Sp_109").kind is CalendarKind.HOLIDAY
    assert canonicalize("odpt.Calendar:Specific.Keio.Sp-160").kind is CalendarKind.SATURDAY
    assert canonicalize("odpt.Calendar:Specific.Keio.Sp-179").kind is CalendarKind.WEEKDAY
    # 未知のコードは平日
    assert canonicalize("odpt.Calendar:Specific.Keio.Sp-999").kind is CalendarKind.WEEKDAY


def test_specific_day_keeps_raw_value_and_own_tag():
    raw = "odpt.Calendar:Specific.Keio.Sp-100"
    calendar = canonicalize(raw)
    assert calendar.raw_value == raw
    assert calendar.tag == "sp-100"
    assert calendar.tag != HOLIDAY.tag
    assert calendar.display_name == "Holiday"


def test_canonicalize_is_stable():
    raw = "odpt.Calendar:Specific.Tokyu.Weekday"
    assert canonicalize(raw) == canonicalize(raw)


def test_unknown_identifier_falls_back_to_weekday(caplog):
    assert from_raw_value("odpt.Calendar:Someday") is None
    assert canonicalize("odpt.Calendar:Someday") == WEEKDAY
    assert "Unknown calendar identifier" in caplog.text


def test_from_tag_or_raw():
    assert from_tag_or_raw("weekend") == SATURDAY_HOLIDAY
    assert from_tag_or_raw("odpt.Calendar:Holiday") == HOLIDAY
    assert from_tag_or_raw("nonsense") is None


def test_opposite_for_copy():
    assert opposite_for_copy(WEEKDAY) == HOLIDAY
    assert opposite_for_copy(HOLIDAY) == WEEKDAY
    assert opposite_for_copy(SATURDAY_HOLIDAY) == WEEKDAY


def test_alternate_tags_for_read():
    assert "monday" in alternate_tags_for_read("weekday")
    assert alternate_tags_for_read("weekend") == ["odpt.Calendar:SaturdayHoliday", "saturdayHoliday"]
    assert alternate_tags_for_read("sp-100") == []


class TestResolveForDate:
    available = [WEEKDAY, SATURDAY_HOLIDAY]

    def test_wednesday_resolves_to_weekday(self):
        assert resolve_for_date(WEDNESDAY, self.available) == WEEKDAY

    def test_sunday_resolves_to_weekend(self):
        assert resolve_for_date(SUNDAY_DATE, self.available) == SATURDAY_HOLIDAY

    def test_exact_day_name_is_preferred(self):
        wednesday = from_raw_value("odpt.Calendar:Wednesday")
        assert resolve_for_date(WEDNESDAY, [WEEKDAY, wednesday]) == wednesday

    def test_saturday_prefers_exact_match(self):
        assert resolve_for_date(SATURDAY_DATE, [WEEKDAY, SATURDAY, SUNDAY]) == SATURDAY
        assert resolve_for_date(SUNDAY_DATE, [WEEKDAY, SATURDAY, SUNDAY]) == SUNDAY

    def test_holiday_on_weekday(self):
        result = resolve_for_date(WEDNESDAY, [WEEKDAY, HOLIDAY], is_holiday=lambda d: True)
        assert result == HOLIDAY

    def test_fallbacks(self):
        assert resolve_for_date(SUNDAY_DATE, [WEEKDAY]) == WEEKDAY
        assert resolve_for_date(SUNDAY_DATE, [SATURDAY]) == SATURDAY
        assert resolve_for_date(WEDNESDAY, []) == WEEKDAY

    def test_specific_day_is_returned_for_matching_category(self):
        specific = CalendarType.specific_day("odpt.Calendar:Specific.Keio.Sp-170")
        assert resolve_for_date(WEDNESDAY, [specific, SATURDAY_HOLIDAY]) == specific
