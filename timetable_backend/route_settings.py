# timetable_backend/route_settings.py
"""
経路・路線・乗換の設定値の読み書き。

キーが無いときは既定値を返し、例外は投げない。
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from . import key_space as ks
from .config import get_route_config
from .kv_store import KeyValueStore, load_json_list, save_json_list

logger = logging.getLogger(__name__)

ACCENT_COLOR = "#03DAC5"
DEFAULT_LINE_KIND = "Railway"
DEFAULT_TRANSPORTATION = "Walking"


class LineKind(str, Enum):
    RAILWAY = "Railway"
    BUS = "Bus"


def parse_line_kind(text: Optional[str]) -> LineKind:
    """"RAILWAY" / "RAIL" → 鉄道、"BUS" → バス、それ以外は鉄道"""
    if text and text.upper() == "BUS":
        return LineKind.BUS
    if text and text.upper() not in ("RAILWAY", "RAIL"):
        logger.debug("Unknown line kind %r, treating as railway", text)
    return LineKind.RAILWAY


# ============================================================================
# 既定値つきの読み込み
# ============================================================================

def read_string(store: KeyValueStore, key: str, default: str) -> str:
    if not store.contains(key):
        return default
    value = store.get_string(key)
    return value if value is not None else default


def read_int(store: KeyValueStore, key: str, default: int) -> int:
    if not store.contains(key):
        return default
    value = store.get_int(key)
    return value if value is not None else default


def read_bool(store: KeyValueStore, key: str, default: bool) -> bool:
    if not store.contains(key):
        return default
    value = (store.get_string(key) or "").strip().lower()
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    logger.warning("Stored value for %s is not a boolean: %r", key, value)
    return default


def write_bool(store: KeyValueStore, key: str, value: bool) -> None:
    store.set_string(key, "true" if value else "false")


# ============================================================================
# 経路単位
# ============================================================================

def show_route2(store: KeyValueStore, route: str) -> bool:
    return read_bool(store, ks.show_route2_key(route), False)


def change_line(store: KeyValueStore, route: str) -> int:
    """乗換回数（0〜2）"""
    return read_int(store, ks.change_line_key(route), 0)


def _default_endpoints(route: str) -> tuple:
    conf = get_route_config(route)
    if conf:
        return conf.default_departure, conf.default_destination
    return ("Office", "Home") if ks.is_back(route) else ("Home", "Office")


def departure_point(store: KeyValueStore, route: str) -> str:
    return read_string(store, ks.departure_point_key(route), _default_endpoints(route)[0])


def destination(store: KeyValueStore, route: str) -> str:
    return read_string(store, ks.destination_key(route), _default_endpoints(route)[1])


# ============================================================================
# 路線スロット単位（num は 0〜2）
# ============================================================================

def depart_station(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.depart_station_key(route, num), f"Dep. St. {num + 1}")


def arrive_station(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.arrive_station_key(route, num), f"Arr. St. {num + 1}")


def depart_station_code(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.depart_station_code_key(route, num), "")


def arrive_station_code(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.arrive_station_code_key(route, num), "")


def operator_name(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.operator_name_key(route, num), "")


def operator_code(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.operator_code_key(route, num), "")


def line_selected(store: KeyValueStore, route: str, num: int) -> bool:
    return read_bool(store, ks.line_selected_key(route, num), False)


def line_direction(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.line_direction_key(route, num), "")


def line_name(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.line_name_key(route, num), f"Line {num + 1}")


def line_color(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.line_color_key(route, num), ACCENT_COLOR)


def line_code(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.line_code_key(route, num), "")


def line_kind(store: KeyValueStore, route: str, num: int) -> LineKind:
    return parse_line_kind(read_string(store, ks.line_kind_key(route, num), DEFAULT_LINE_KIND))


def ride_time(store: KeyValueStore, route: str, num: int) -> int:
    """路線の既定乗車時間（分）"""
    return read_int(store, ks.ride_time_key(route, num), 0)


# ============================================================================
# 乗換スロット単位（num は 0〜3、0 は目的地までの徒歩など）
# ============================================================================

def transportation(store: KeyValueStore, route: str, num: int) -> str:
    return read_string(store, ks.transportation_key(route, num), DEFAULT_TRANSPORTATION)


def transfer_time(store: KeyValueStore, route: str, num: int) -> int:
    return read_int(store, ks.transfer_time_key(route, num), 0)


# ============================================================================
# 配列
# ============================================================================

def line_name_array(store: KeyValueStore, route: str) -> List[str]:
    return [line_name(store, route, n) for n in ks.LINE_SLOTS]


def line_color_array(store: KeyValueStore, route: str) -> List[str]:
    return [line_color(store, route, n) for n in ks.LINE_SLOTS]


def line_kind_array(store: KeyValueStore, route: str) -> List[LineKind]:
    return [line_kind(store, route, n) for n in ks.LINE_SLOTS]


def ride_time_array(store: KeyValueStore, route: str) -> List[int]:
    return [ride_time(store, route, n) for n in ks.LINE_SLOTS]


def station_array(store: KeyValueStore, route: str) -> List[str]:
    """[発駅1, 着駅1, 発駅2, 着駅2, 発駅3, 着駅3]"""
    stations: List[str] = []
    for n in ks.LINE_SLOTS:
        stations.append(depart_station(store, route, n))
        stations.append(arrive_station(store, route, n))
    return stations


def transportation_array(store: KeyValueStore, route: str) -> List[str]:
    return [transportation(store, route, n) for n in ks.TRANSFER_SLOTS]


def transfer_time_array(store: KeyValueStore, route: str) -> List[int]:
    return [transfer_time(store, route, n) for n in ks.TRANSFER_SLOTS]


# ============================================================================
# まとめて読み書きするモデル
# ============================================================================

class LineSettings(BaseModel):
    """路線スロット1つ分の設定"""
    operator_name: str = ""
    operator_code: str = ""
    line_name: str
    line_code: str = ""
    line_color: str = ACCENT_COLOR
    line_kind: LineKind = LineKind.RAILWAY
    line_direction: str = ""
    line_selected: bool = False
    depart_station: str
    depart_station_code: str = ""
    arrive_station: str
    arrive_station_code: str = ""
    ride_time: int = Field(0, ge=0)


class TransferSettings(BaseModel):
    """乗換スロット1つ分の設定"""
    transportation: str = DEFAULT_TRANSPORTATION
    transfer_time: int = Field(0, ge=0)


class RouteSettings(BaseModel):
    """経路全体の設定"""
    departure_point: str
    destination: str
    show_route2: bool = False
    change_line: int = Field(0, ge=0, le=2)


def load_line_settings(store: KeyValueStore, route: str, num: int) -> LineSettings:
    ks.check_route(route)
    ks.check_line(num)
    return LineSettings(
        operator_name=operator_name(store, route, num),
        operator_code=operator_code(store, route, num),
        line_name=line_name(store, route, num),
        line_code=line_code(store, route, num),
        line_color=line_color(store, route, num),
        line_kind=line_kind(store, route, num),
        line_direction=line_direction(store, route, num),
        line_selected=line_selected(store, route, num),
        depart_station=depart_station(store, route, num),
        depart_station_code=depart_station_code(store, route, num),
        arrive_station=arrive_station(store, route, num),
        arrive_station_code=arrive_station_code(store, route, num),
        ride_time=ride_time(store, route, num),
    )


def save_line_settings(store: KeyValueStore, route: str, num: int, settings: LineSettings) -> None:
    ks.check_route(route)
    ks.check_line(num)
    with store.batch():
        store.set_string(ks.operator_name_key(route, num), settings.operator_name)
        store.set_string(ks.operator_code_key(route, num), settings.operator_code)
        store.set_string(ks.line_name_key(route, num), settings.line_name)
        store.set_string(ks.line_code_key(route, num), settings.line_code)
        store.set_string(ks.line_color_key(route, num), settings.line_color)
        store.set_string(ks.line_kind_key(route, num), settings.line_kind.value)
        store.set_string(ks.line_direction_key(route, num), settings.line_direction)
        write_bool(store, ks.line_selected_key(route, num), settings.line_selected)
        store.set_string(ks.depart_station_key(route, num), settings.depart_station)
        store.set_string(ks.depart_station_code_key(route, num), settings.depart_station_code)
        store.set_string(ks.arrive_station_key(route, num), settings.arrive_station)
        store.set_string(ks.arrive_station_code_key(route, num), settings.arrive_station_code)
        store.set_int(ks.ride_time_key(route, num), settings.ride_time)
    logger.info("Saved line settings for %s line %s", route, num + 1)


def load_transfer_settings(store: KeyValueStore, route: str, num: int) -> TransferSettings:
    ks.check_route(route)
    ks.check_transfer(num)
    return TransferSettings(
        transportation=transportation(store, route, num),
        transfer_time=transfer_time(store, route, num),
    )


def save_transfer_settings(store: KeyValueStore, route: str, num: int, settings: TransferSettings) -> None:
    ks.check_route(route)
    ks.check_transfer(num)
    with store.batch():
        store.set_string(ks.transportation_key(route, num), settings.transportation)
        store.set_int(ks.transfer_time_key(route, num), settings.transfer_time)


def load_route_settings(store: KeyValueStore, route: str) -> RouteSettings:
    ks.check_route(route)
    return RouteSettings(
        departure_point=departure_point(store, route),
        destination=destination(store, route),
        show_route2=show_route2(store, route),
        change_line=change_line(store, route),
    )


def save_route_settings(store: KeyValueStore, route: str, settings: RouteSettings) -> None:
    ks.check_route(route)
    with store.batch():
        store.set_string(ks.departure_point_key(route), settings.departure_point)
        store.set_string(ks.destination_key(route), settings.destination)
        write_bool(store, ks.show_route2_key(route), settings.show_route2)
        store.set_int(ks.change_line_key(route), settings.change_line)


# ============================================================================
# 事業者の路線一覧・路線の停留所一覧（JSON で保存）
# ============================================================================

def save_operator_line_list(store: KeyValueStore, route: str, num: int, lines: List[Dict[str, Any]]) -> None:
    save_json_list(store, ks.operator_line_list_key(route, num), lines)


def load_operator_line_list(store: KeyValueStore, route: str, num: int) -> Optional[List[Dict[str, Any]]]:
    return load_json_list(store, ks.operator_line_list_key(route, num))


def save_line_stop_list(store: KeyValueStore, route: str, num: int, stops: List[Dict[str, Any]]) -> None:
    save_json_list(store, ks.line_stop_list_key(route, num), stops)


def load_line_stop_list(store: KeyValueStore, route: str, num: int) -> Optional[List[Dict[str, Any]]]:
    return load_json_list(store, ks.line_stop_list_key(route, num))
