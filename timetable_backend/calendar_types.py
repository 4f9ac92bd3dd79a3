# timetable_backend/calendar_types.py
"""
ダイヤ種別（平日・土休日・曜日別・特定日）の定義と判定。

特定日（odpt.Calendar:Specific.*）は生成時に一度だけ表示用カテゴリへ正規化し、
元の ID は保存キーや外部 API との照合用にそのまま保持する。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

SPECIFIC_PREFIX = "odpt.Calendar:Specific."


class CalendarKind(str, Enum):
    """標準のダイヤ種別。値は ODPT の生 ID。"""
    WEEKDAY = "odpt.Calendar:Weekday"
    HOLIDAY = "odpt.Calendar:Holiday"
    SATURDAY_HOLIDAY = "odpt.Calendar:SaturdayHoliday"
    SUNDAY = "odpt.Calendar:Sunday"
    MONDAY = "odpt.Calendar:Monday"
    TUESDAY = "odpt.Calendar:Tuesday"
    WEDNESDAY = "odpt.Calendar:Wednesday"
    THURSDAY = "odpt.Calendar:Thursday"
    FRIDAY = "odpt.Calendar:Friday"
    SATURDAY = "odpt.Calendar:Saturday"


# 保存キーに使うタグ
_STORAGE_TAGS: Dict[CalendarKind, str] = {
    CalendarKind.WEEKDAY: "weekday",
    CalendarKind.HOLIDAY: "holiday",
    CalendarKind.SATURDAY_HOLIDAY: "weekend",
    CalendarKind.SUNDAY: "sunday",
    CalendarKind.MONDAY: "monday",
    CalendarKind.TUESDAY: "tuesday",
    CalendarKind.WEDNESDAY: "wednesday",
    CalendarKind.THURSDAY: "thursday",
    CalendarKind.FRIDAY: "friday",
    CalendarKind.SATURDAY: "saturday",
}

_DISPLAY_NAMES: Dict[CalendarKind, str] = {
    CalendarKind.WEEKDAY: "Weekday",
    CalendarKind.HOLIDAY: "Holiday",
    CalendarKind.SATURDAY_HOLIDAY: "Saturday/Holiday",
    CalendarKind.SUNDAY: "Sunday",
    CalendarKind.MONDAY: "Monday",
    CalendarKind.TUESDAY: "Tuesday",
    CalendarKind.WEDNESDAY: "Wednesday",
    CalendarKind.THURSDAY: "Thursday",
    CalendarKind.FRIDAY: "Friday",
    CalendarKind.SATURDAY: "Saturday",
}

# 特定日 ID の末尾コード → 表示カテゴリ
_SPECIFIC_SUFFIX_CODES: Dict[str, CalendarKind] = {
    "100": CalendarKind.HOLIDAY,
    "109": CalendarKind.HOLIDAY,
    "160": CalendarKind.SATURDAY,
    "170": CalendarKind.WEEKDAY,
    "179": CalendarKind.WEEKDAY,
}

_SPECIFIC_SUFFIX_NAMES: Dict[str, CalendarKind] = {
    "Weekday": CalendarKind.WEEKDAY,
    "Saturday": CalendarKind.SATURDAY,
    "Holiday": CalendarKind.HOLIDAY,
}


# ============================================================================
# CalendarType
# ============================================================================

@dataclass(frozen=True)
class CalendarType:
    """
    ダイヤ種別の値。

    raw_value: ODPT の生 ID（特定日の場合は元の ID をそのまま保持）
    kind:      表示・判定に使う標準カテゴリ（特定日は正規化済み）
    specific:  特定日かどうか
    """
    raw_value: str
    kind: CalendarKind
    specific: bool = False
    tag: str = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.specific:
            tag = self.raw_value.split(".")[-1].lower()
        else:
            tag = _STORAGE_TAGS[self.kind]
        object.__setattr__(self, "tag", tag)

    def display_calendar_type(self) -> "CalendarType":
        """特定日なら正規化済みの標準種別、それ以外は自分自身"""
        return STANDARD_TYPES[self.kind] if self.specific else self

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.kind]

    @classmethod
    def standard(cls, kind: CalendarKind) -> "CalendarType":
        return cls(kind.value, kind)

    @classmethod
    def specific_day(cls, raw_value: str) -> "CalendarType":
        return cls(raw_value, canonical_kind_for_specific(raw_value), specific=True)


def canonical_kind_for_specific(raw_value: str) -> CalendarKind:
    """
    特定日 ID の最後の "." 区切り要素から表示カテゴリを決める。

    - 要素が "Weekday" / "Saturday" / "Holiday" ならそのまま
    - それ以外は "-" または "_" で分割し（要素が2つ以上になる方）、末尾のコードで判定
      100, 109 → Holiday / 160 → Saturday / 170, 179 → Weekday / その他 → Weekday
    """
    last = raw_value.split(".")[-1]
    if last in _SPECIFIC_SUFFIX_NAMES:
        return _SPECIFIC_SUFFIX_NAMES[last]

    by_dash = last.split("-")
    by_underscore = last.split("_")
    if len(by_dash) > 1:
        code = by_dash[-1]
    elif len(by_underscore) > 1:
        code = by_underscore[-1]
    else:
        code = last
    return _SPECIFIC_SUFFIX_CODES.get(code, CalendarKind.WEEKDAY)


STANDARD_TYPES: Dict[CalendarKind, CalendarType] = {
    kind: CalendarType.standard(kind) for kind in CalendarKind
}

WEEKDAY = STANDARD_TYPES[CalendarKind.WEEKDAY]
HOLIDAY = STANDARD_TYPES[CalendarKind.HOLIDAY]
SATURDAY_HOLIDAY = STANDARD_TYPES[CalendarKind.SATURDAY_HOLIDAY]
SUNDAY = STANDARD_TYPES[CalendarKind.SUNDAY]
SATURDAY = STANDARD_TYPES[CalendarKind.SATURDAY]

# 全標準種別（走査順）
ALL_STANDARD: List[CalendarType] = list(STANDARD_TYPES.values())

DEFAULT_AVAILABLE_RAW: List[str] = [
    CalendarKind.WEEKDAY.value,
    CalendarKind.SATURDAY_HOLIDAY.value,
]

_TAG_TO_STANDARD: Dict[str, CalendarType] = {t.tag: t for t in ALL_STANDARD}


# ============================================================================
# 生 ID / タグからの変換
# ============================================================================

def from_raw_value(raw_value: str) -> Optional[CalendarType]:
    """生 ID から CalendarType を得る。未知の ID（特定日以外）は None。"""
    try:
        return STANDARD_TYPES[CalendarKind(raw_value)]
    except ValueError:
        pass
    if raw_value.startswith(SPECIFIC_PREFIX):
        return CalendarType.specific_day(raw_value)
    return None


def canonicalize(raw_value: str) -> CalendarType:
    """生 ID を CalendarType にする。未知の ID は平日として扱う。"""
    calendar = from_raw_value(raw_value)
    if calendar is None:
        logger.warning("Unknown calendar identifier %r, falling back to weekday", raw_value)
        return WEEKDAY
    return calendar


def from_tag_or_raw(value: str) -> Optional[CalendarType]:
    """保存タグ（"weekday", "weekend" など）または生 ID を受け付ける"""
    if value in _TAG_TO_STANDARD:
        return _TAG_TO_STANDARD[value]
    return from_raw_value(value)


def opposite_for_copy(calendar: CalendarType) -> CalendarType:
    """コピー元候補で使う反対側のダイヤ（平日 ⇔ 休日）"""
    return HOLIDAY if calendar.tag == "weekday" else WEEKDAY


# ============================================================================
# 旧形式タグ（読み込み時のフォールバック）
# ============================================================================

_WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday")

_ALTERNATE_TAGS: Dict[str, List[str]] = {
    "weekday": (
        ["odpt.Calendar:Weekday"]
        + list(_WEEKDAY_NAMES)
        + [f"odpt.Calendar:{name.capitalize()}" for name in _WEEKDAY_NAMES]
    ),
    "holiday": ["odpt.Calendar:Holiday", "sunday", "odpt.Calendar:Sunday"],
    "weekend": ["odpt.Calendar:SaturdayHoliday", "saturdayHoliday"],
    "sunday": ["odpt.Calendar:Sunday"],
    "saturday": ["odpt.Calendar:Saturday", "saturdayHoliday", "odpt.Calendar:SaturdayHoliday"],
}
for _name in _WEEKDAY_NAMES:
    _ALTERNATE_TAGS[_name] = [f"odpt.Calendar:{_name.capitalize()}", "weekday", "odpt.Calendar:Weekday"]


def alternate_tags_for_read(tag: str) -> List[str]:
    """
    主キーが空のときに読みに行く旧形式・インポート由来のタグ。

    平日表示のときは月〜金の個別データも読めるようにしている。
    """
    return list(_ALTERNATE_TAGS.get(tag, []))


# ============================================================================
# 日付 → ダイヤ種別
# ============================================================================

def never_holiday(day: date) -> bool:
    """祝日判定の既定実装（祝日カレンダーは持たない）"""
    return False


_WEEKDAY_KINDS = (
    CalendarKind.MONDAY,
    CalendarKind.TUESDAY,
    CalendarKind.WEDNESDAY,
    CalendarKind.THURSDAY,
    CalendarKind.FRIDAY,
)


def resolve_for_date(
    day: date,
    available: Sequence[CalendarType],
    is_holiday: Callable[[date], bool] = never_holiday,
) -> CalendarType:
    """
    日付と「データがあるダイヤ種別」から、表示すべきダイヤ種別を決める。

    判定順（順序に意味がある）:
      1. 祝日でない月〜金: 同じ曜日 → 平日
      2. 祝日 → 休日、日曜 → 日曜、土曜 → 土曜
      3. 土日・祝日 → 土休日
      4. 平日 → available の先頭 → 平日

    available に特定日が含まれていれば、表示カテゴリが一致する標準種別の代わりに
    その特定日を返す。
    """
    def is_available(kind: CalendarKind) -> bool:
        return any(c.kind == kind for c in available)

    def pick(kind: CalendarKind) -> CalendarType:
        for c in available:
            if c.specific and c.kind == kind:
                return c
        return STANDARD_TYPES[kind]

    holiday = is_holiday(day)
    weekday_index = day.weekday()  # 月曜 = 0, 日曜 = 6
    is_sunday = weekday_index == 6
    is_saturday = weekday_index == 5

    if not holiday and weekday_index < 5:
        day_kind = _WEEKDAY_KINDS[weekday_index]
        if is_available(day_kind):
            return pick(day_kind)
        if is_available(CalendarKind.WEEKDAY):
            return pick(CalendarKind.WEEKDAY)

    if holiday and is_available(CalendarKind.HOLIDAY):
        return pick(CalendarKind.HOLIDAY)
    if is_sunday and is_available(CalendarKind.SUNDAY):
        return pick(CalendarKind.SUNDAY)
    if is_saturday and is_available(CalendarKind.SATURDAY):
        return pick(CalendarKind.SATURDAY)
    if (holiday or is_sunday or is_saturday) and is_available(CalendarKind.SATURDAY_HOLIDAY):
        return pick(CalendarKind.SATURDAY_HOLIDAY)

    if is_available(CalendarKind.WEEKDAY):
        return pick(CalendarKind.WEEKDAY)
    if available:
        return available[0]
    return WEEKDAY
