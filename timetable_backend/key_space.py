# timetable_backend/key_space.py
"""
キー・バリューストアのキー定義。

キー文字列は保存済みデータとの互換のための契約なので、
接尾辞・番号の付け方（1始まり、時は2桁、乗換 0 番だけ "e" 接尾辞）を変えないこと。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Tuple

from .calendar_types import CalendarType, alternate_tags_for_read, opposite_for_copy
from .time_codec import add_zero_time

RouteDirection = Literal["back1", "back2", "go1", "go2"]

ROUTE_DIRECTIONS: Tuple[str, ...] = ("back1", "back2", "go1", "go2")

LINE_SLOTS = range(0, 3)
TRANSFER_SLOTS = range(0, 4)

# 時刻表の時（4時〜翌1時 = 25時）
FIRST_HOUR = 4
LAST_HOUR = 25
TIMETABLE_HOURS = range(FIRST_HOUR, LAST_HOUR + 1)


# ============================================================================
# 入力チェック
# ============================================================================

def check_route(route: str) -> str:
    if route not in ROUTE_DIRECTIONS:
        raise ValueError(f"Unknown route direction {route!r} (expected one of {ROUTE_DIRECTIONS})")
    return route


def check_line(num: int) -> int:
    if num not in LINE_SLOTS:
        raise ValueError(f"Line slot {num} out of range (must be 0-2)")
    return num


def check_transfer(num: int) -> int:
    if num not in TRANSFER_SLOTS:
        raise ValueError(f"Transfer slot {num} out of range (must be 0-3)")
    return num


def check_hour(hour: int) -> int:
    if hour not in TIMETABLE_HOURS:
        raise ValueError(f"Hour {hour} out of range (must be {FIRST_HOUR}-{LAST_HOUR})")
    return hour


# ============================================================================
# 経路単位のキー
# ============================================================================

def is_back(route: str) -> bool:
    """帰り（back1 / back2）かどうか"""
    return route in ("back1", "back2")


def other_route(route: str) -> str:
    """末尾の 1 と 2 を入れ替えた経路（go1 ⇔ go2, back1 ⇔ back2）"""
    if not route:
        return route
    return route[:-1] + ("2" if route[-1] == "1" else "1")


def show_route2_key(route: str) -> str:
    return f"{route}route2flag"


def change_line_key(route: str) -> str:
    return f"{route}changeline"


def departure_point_key(route: str) -> str:
    # 帰りは出発地と目的地が入れ替わる
    return "destination" if is_back(route) else "departurepoint"


def destination_key(route: str) -> str:
    return "departurepoint" if is_back(route) else "destination"


# ============================================================================
# 路線スロット単位のキー（num は 0 始まり、キーは 1 始まり）
# ============================================================================

def _line_key(route: str, name: str, num: int) -> str:
    return f"{route}{name}{num + 1}"


def depart_station_key(route: str, num: int) -> str:
    return _line_key(route, "departstation", num)


def arrive_station_key(route: str, num: int) -> str:
    return _line_key(route, "arrivestation", num)


def depart_station_code_key(route: str, num: int) -> str:
    return _line_key(route, "departstationcode", num)


def arrive_station_code_key(route: str, num: int) -> str:
    return _line_key(route, "arrivestationcode", num)


def operator_name_key(route: str, num: int) -> str:
    return _line_key(route, "operatorname", num)


def operator_code_key(route: str, num: int) -> str:
    return _line_key(route, "operatorcode", num)


def line_name_key(route: str, num: int) -> str:
    return _line_key(route, "linename", num)


def line_selected_key(route: str, num: int) -> str:
    return _line_key(route, "lineSelected", num)


def line_color_key(route: str, num: int) -> str:
    return _line_key(route, "linecolor", num)


def line_direction_key(route: str, num: int) -> str:
    return _line_key(route, "linedirection", num)


def line_code_key(route: str, num: int) -> str:
    return _line_key(route, "linecode", num)


def line_kind_key(route: str, num: int) -> str:
    return _line_key(route, "linekind", num)


def ride_time_key(route: str, num: int) -> str:
    return _line_key(route, "ridetime", num)


def operator_line_list_key(route: str, num: int) -> str:
    return _line_key(route, "operatorlinelist", num)


def line_stop_list_key(route: str, num: int) -> str:
    return _line_key(route, "linestoplist", num)


def calendar_types_cache_key(route: str, num: int) -> str:
    return f"{route}line{num + 1}_calendarTypes"


# ============================================================================
# 乗換スロット単位のキー（0 番だけ "e" 接尾辞、1〜3 番は番号そのまま）
# ============================================================================

def transportation_key(route: str, num: int) -> str:
    return f"{route}transporte" if num == 0 else f"{route}transport{num}"


def transfer_time_key(route: str, num: int) -> str:
    return f"{route}transfertimee" if num == 0 else f"{route}transfertime{num}"


# ============================================================================
# 時刻表のキー
# ============================================================================

def timetable_key(route: str, calendar: CalendarType, num: int, hour: int) -> str:
    return f"{line_name_key(route, num)}{calendar.tag}{add_zero_time(hour)}"


def timetable_ride_time_key(route: str, calendar: CalendarType, num: int, hour: int) -> str:
    return f"{timetable_key(route, calendar, num, hour)}ridetime"


def timetable_train_type_key(route: str, calendar: CalendarType, num: int, hour: int) -> str:
    return f"{timetable_key(route, calendar, num, hour)}traintype"


def train_type_list_key(route: str, calendar: CalendarType, num: int) -> str:
    return f"{line_name_key(route, num)}{calendar.tag}traintypelist"


@dataclass(frozen=True)
class BucketKeys:
    """1つの時刻表バケット（経路・路線・ダイヤ・時）の3つのキー"""
    departures: str
    ride_times: str
    train_types: str

    def all(self) -> Tuple[str, str, str]:
        return (self.departures, self.ride_times, self.train_types)


def bucket_keys(route: str, calendar: CalendarType, num: int, hour: int) -> BucketKeys:
    return BucketKeys(
        departures=timetable_key(route, calendar, num, hour),
        ride_times=timetable_ride_time_key(route, calendar, num, hour),
        train_types=timetable_train_type_key(route, calendar, num, hour),
    )


def alternate_bucket_keys(route: str, calendar: CalendarType, num: int, hour: int) -> List[BucketKeys]:
    """旧形式タグで保存されたバケットのキー（読み込み専用）"""
    base = line_name_key(route, num)
    hh = add_zero_time(hour)
    return [
        BucketKeys(
            departures=f"{base}{alt}{hh}",
            ride_times=f"{base}{alt}{hh}ridetime",
            train_types=f"{base}{alt}{hh}traintype",
        )
        for alt in alternate_tags_for_read(calendar.tag)
    ]


def alternate_train_type_list_keys(route: str, calendar: CalendarType, num: int) -> List[str]:
    base = line_name_key(route, num)
    return [f"{base}{alt}traintypelist" for alt in alternate_tags_for_read(calendar.tag)]


# ============================================================================
# コピー元候補
# ============================================================================

COPY_PREVIOUS_HOUR = 0
COPY_NEXT_HOUR = 1
COPY_OPPOSITE_CALENDAR = 2
COPY_OTHER_ROUTE_LINE1 = 3
COPY_OTHER_ROUTE_LINE2 = 4
COPY_OTHER_ROUTE_LINE3 = 5


def copy_source_keys(route: str, calendar: CalendarType, num: int, hour: int) -> Tuple[str, ...]:
    """
    「〜からコピー」の候補となる6つの時刻表キー。

      0: 前の時   1: 次の時   2: 反対側のダイヤ（平日 ⇔ 休日）の同じ時
      3〜5: もう一方の経路（go1 ⇔ go2 など）の路線 1〜3 の同じ時
    """
    other = other_route(route)
    return (
        timetable_key(route, calendar, num, hour - 1),
        timetable_key(route, calendar, num, hour + 1),
        timetable_key(route, opposite_for_copy(calendar), num, hour),
        timetable_key(other, calendar, 0, hour),
        timetable_key(other, calendar, 1, hour),
        timetable_key(other, calendar, 2, hour),
    )


@dataclass(frozen=True)
class CopySource:
    index: int
    label: str
    key: str
    enabled: bool


def copy_source_options(route: str, calendar: CalendarType, num: int, hour: int) -> List[CopySource]:
    """
    コピー元候補を表示用ラベル付きで返す。

    4時には「前の時」、25時には「次の時」が存在しないので enabled=False にする。
    """
    keys = copy_source_keys(route, calendar, num, hour)
    labels = (
        f"{hour - 1}:00-",
        f"{hour + 1}:00-",
        opposite_for_copy(calendar).display_name,
        "Other route line 1",
        "Other route line 2",
        "Other route line 3",
    )
    options = []
    for index, (label, key) in enumerate(zip(labels, keys)):
        enabled = True
        if index == COPY_PREVIOUS_HOUR and hour <= FIRST_HOUR:
            enabled = False
        if index == COPY_NEXT_HOUR and hour >= LAST_HOUR:
            enabled = False
        options.append(CopySource(index=index, label=label, key=key, enabled=enabled))
    return options
