# timetable_backend/route_planner.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, List, Optional

from zoneinfo import ZoneInfo

from . import key_space as ks
from . import route_settings
from .calendar_types import CalendarType, never_holiday, resolve_for_date
from .countdown import CountdownState, countdown_text, state_for
from .kv_store import KeyValueStore
from .time_codec import (
    NO_DEPARTURE,
    SERVICE_DAY_START_HOUR,
    minus_hhmm,
    over_time,
    plus_hhmm,
    string_time,
    timetable_hour,
)
from .timetable_store import TimetableStore

logger = logging.getLogger(__name__)

JST = ZoneInfo("Asia/Tokyo")


# ============================================================================
# Dataclass 定義
# ============================================================================

@dataclass
class RoutePlan:
    """
    1経路分の「次に乗る便」の計算結果。

    times の並び（HHMM、発車なしは 2700）:
      [目的地到着, 出発地出発, 路線1発, 路線1着, 路線2発, 路線2着, ...]
    """
    route: str
    service_date: date
    current_time: int               # HHMMSS（0〜3時は 24〜27時）
    calendars: List[CalendarType]   # 路線ごとに使ったダイヤ種別
    times: List[int]
    display_times: List[str] = field(default_factory=list)
    countdown: str = ""
    countdown_state: Optional[CountdownState] = None

    @property
    def first_departure(self) -> int:
        return self.times[2] if len(self.times) > 2 else NO_DEPARTURE


# ============================================================================
# 時間系ユーティリティ
# ============================================================================

def get_service_date(dt: datetime) -> date:
    """
    指定時刻が属する「サービス日」を返す。

    ルール:
      - 04:00〜翌03:59 までを1サービス日とみなす。
      - 深夜0〜3時台は「前日のサービス日」に属する。
    """
    if dt.tzinfo is None:
        # 念のため JST として扱う
        dt = dt.replace(tzinfo=JST)

    if dt.hour < SERVICE_DAY_START_HOUR:
        return (dt - timedelta(days=1)).date()
    return dt.date()


def to_timetable_hhmmss(dt: datetime) -> int:
    """
    時刻表と同じ尺度の HHMMSS を返す（0〜3時 は 24〜27時）。

    例:
      - 08:15:30 → 81530
      - 01:05:00 → 250500
    """
    return timetable_hour(dt.hour) * 10000 + dt.minute * 100 + dt.second


# ============================================================================
# 時刻表の配列
# ============================================================================

def calendar_for(
    store: KeyValueStore,
    route: str,
    num: int,
    day: date,
    is_holiday: Callable[[date], bool] = never_holiday,
) -> CalendarType:
    available = TimetableStore(store).available_calendar_types(route, num)
    return resolve_for_date(day, available, is_holiday)


def calendar_departures(store: KeyValueStore, route: str, num: int, calendar: CalendarType) -> List[int]:
    """指定ダイヤの全発車を HHMM（時*100+分）で昇順に並べる"""
    timetable = TimetableStore(store)
    times: List[int] = []
    for hour in ks.TIMETABLE_HOURS:
        for departure in timetable.load_bucket(route, num, calendar, hour).departures:
            value = hour * 100 + departure
            if 0 <= value < NO_DEPARTURE:
                times.append(value)
    return sorted(times)


def timetable_array(
    store: KeyValueStore,
    route: str,
    num: int,
    day: date,
    is_holiday: Callable[[date], bool] = never_holiday,
) -> List[int]:
    """サービス日 day に使うダイヤの全発車（HHMM、昇順）"""
    return calendar_departures(store, route, num, calendar_for(store, route, num, day, is_holiday))


def time_array(
    store: KeyValueStore,
    route: str,
    day: date,
    current_hhmmss: int,
    is_holiday: Callable[[date], bool] = never_holiday,
) -> List[int]:
    """サービス日 day の current_hhmmss に出発する場合の乗り継ぎ（並びは RoutePlan.times と同じ）"""
    calendars = [calendar_for(store, route, n, day, is_holiday) for n in ks.LINE_SLOTS]
    return connection_times(store, route, calendars, current_hhmmss)


def connection_times(
    store: KeyValueStore,
    route: str,
    calendars: List[CalendarType],
    current_hhmmss: int,
) -> List[int]:
    """
    現在時刻から乗り継ぎを計算する。

    - 路線1: 出発地から駅まで（乗換スロット1）歩いて間に合う最初の便
    - 路線 i+1: 路線 i の到着 + 乗換時間（乗換スロット i+1）以降の最初の便
    - 目的地到着: 最後の到着 + 乗換スロット0 の時間
    便が無ければ 2700（27:00）とし、以降の計算も 27:00 で頭打ちにする。
    """
    timetable = TimetableStore(store)
    change_line = min(route_settings.change_line(store, route), len(ks.LINE_SLOTS) - 1)
    transfer_times = route_settings.transfer_time_array(store, route)
    departures = [calendar_departures(store, route, n, calendars[n]) for n in range(change_line + 1)]

    current_hhmm = current_hhmmss // 100
    earliest = plus_hhmm(current_hhmm, transfer_times[1])
    first_depart = next((t for t in departures[0] if t > earliest), NO_DEPARTURE)

    times = [first_depart]
    ride = timetable.ride_time_for(route, 0, calendars[0], first_depart)
    times.append(over_time(plus_hhmm(first_depart, ride), first_depart))

    # 出発地を出る時刻（先頭に入れる）
    times.insert(0, over_time(minus_hhmm(first_depart, transfer_times[1]), first_depart))

    for i in range(1, change_line + 1):
        ready = plus_hhmm(times[2 * i], transfer_times[i + 1])
        depart = next((t for t in departures[i] if t >= ready), NO_DEPARTURE)
        times.append(depart)
        ride = timetable.ride_time_for(route, i, calendars[i], depart)
        times.append(over_time(plus_hhmm(depart, ride), depart))

    last_arrival = times[-1]
    times.insert(0, over_time(plus_hhmm(last_arrival, transfer_times[0]), last_arrival))
    return times


def plan_route(
    store: KeyValueStore,
    route: str,
    at: datetime,
    is_holiday: Callable[[date], bool] = never_holiday,
    tz: tzinfo = JST,
) -> RoutePlan:
    """
    指定時刻に出発する場合の経路計算とカウントダウン。

    at は tz の壁時計に直してから使う（タイムゾーンなしなら tz の時刻とみなす）。
    """
    ks.check_route(route)
    if at.tzinfo is None:
        at = at.replace(tzinfo=tz)
    else:
        at = at.astimezone(tz)

    service_date = get_service_date(at)
    current = to_timetable_hhmmss(at)
    calendars = [calendar_for(store, route, n, service_date, is_holiday) for n in ks.LINE_SLOTS]
    times = connection_times(store, route, calendars, current)

    plan = RoutePlan(
        route=route,
        service_date=service_date,
        current_time=current,
        calendars=calendars,
        times=times,
        display_times=[string_time(t) for t in times],
    )
    if plan.first_departure != NO_DEPARTURE:
        plan.countdown = countdown_text(current, plan.first_departure)
        plan.countdown_state = state_for(current, plan.first_departure)

    logger.debug(
        "Planned %s at %s (service date %s): %s",
        route, at.isoformat(), service_date, plan.display_times,
    )
    return plan
