# timetable_backend/timetable_store.py
"""
時刻表の読み書き（キー・バリューストア上の CRUD）。

1つのバケット（経路・路線・ダイヤ・時）は発車分・乗車時間・列車種別の3キーで保存する。
3キーの書き込みは store.batch() で1トランザクションにまとめ、
読み込み側でも長さのずれを既定値で補完する。
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from . import key_space as ks
from . import route_settings
from .bucket_codec import decode_bucket, encode_bucket
from .calendar_types import (
    ALL_STANDARD,
    DEFAULT_AVAILABLE_RAW,
    CalendarType,
    from_raw_value,
)
from .kv_store import KeyValueStore, load_json_list, save_json_list
from .time_codec import (
    adjusted_for_timetable,
    calculate_ride_time,
    parse_int,
    timetable_components,
)
from .timetable_models import HourBucket, ImportedDeparture, TimetableEntry
from .train_types import DEFAULT_TRAIN_TYPE, check_train_type, last_component, sort_train_types

logger = logging.getLogger(__name__)


class TimetableStore:
    """注入されたストアに対する時刻表操作"""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # ========================================================================
    # 読み込み
    # ========================================================================

    def _first_non_empty(self, keys: Iterable[str]) -> str:
        for key in keys:
            value = self.store.get_string(key)
            if value:
                return value
        return ""

    def _read_blobs(self, route: str, num: int, calendar: CalendarType, hour: int) -> Tuple[str, str, str]:
        """
        主キーが無ければ旧形式タグのキーを順に読む（3本それぞれ独立に）。

        主キーが空文字で残っている時（削除済みの印）は旧形式タグを読まない。
        """
        primary = ks.bucket_keys(route, calendar, num, hour)
        if self.store.contains(primary.departures):
            return (
                self.store.get_string(primary.departures) or "",
                self.store.get_string(primary.ride_times) or "",
                self.store.get_string(primary.train_types) or "",
            )
        alternates = ks.alternate_bucket_keys(route, calendar, num, hour)
        departures = self._first_non_empty([primary.departures] + [k.departures for k in alternates])
        ride_times = self._first_non_empty([primary.ride_times] + [k.ride_times for k in alternates])
        train_types = self._first_non_empty([primary.train_types] + [k.train_types for k in alternates])
        return departures, ride_times, train_types

    def load_bucket(self, route: str, num: int, calendar: CalendarType, hour: int) -> HourBucket:
        departures, ride_times, train_types = self._read_blobs(route, num, calendar, hour)
        if not departures:
            return HourBucket(hour=hour)
        default_ride_time = route_settings.ride_time(self.store, route, num)
        return decode_bucket(hour, departures, ride_times, train_types, default_ride_time)

    def load_entries(self, route: str, num: int, calendar: CalendarType, hour: int) -> List[TimetableEntry]:
        """発車分の昇順に並んだ1時間分の発車一覧。データが無ければ空リスト。"""
        ks.check_route(route)
        ks.check_line(num)
        return self.load_bucket(route, num, calendar, hour).entries

    def has_timetable_data(
        self, route: str, num: int, calendar: CalendarType, include_legacy: bool = True
    ) -> bool:
        """include_legacy=False のときは旧形式タグのキーを見ない。削除済みの印はデータなし扱い。"""
        for hour in ks.TIMETABLE_HOURS:
            primary = ks.timetable_key(route, calendar, num, hour)
            if self.store.contains(primary):
                if self.store.get_string(primary):
                    return True
                continue
            if not include_legacy:
                continue
            for keys in ks.alternate_bucket_keys(route, calendar, num, hour):
                if self.store.get_string(keys.departures):
                    return True
        return False

    def valid_hour_range(self, route: str, num: int, calendar: CalendarType) -> List[int]:
        """
        データのある最初の時から最後の時までの連続した範囲。

        範囲内の空の時も含む（画面では空行として表示する）。
        """
        hours = [
            hour for hour in ks.TIMETABLE_HOURS
            if self.load_bucket(route, num, calendar, hour).entries
        ]
        if not hours:
            return []
        return list(range(min(hours), max(hours) + 1))

    def hour_entry_counts(self, route: str, num: int, calendar: CalendarType) -> Dict[int, int]:
        return {
            hour: len(self.load_bucket(route, num, calendar, hour).entries)
            for hour in self.valid_hour_range(route, num, calendar)
        }

    # ========================================================================
    # 書き込み
    # ========================================================================

    def _has_legacy_departures(self, route: str, num: int, calendar: CalendarType, hour: int) -> bool:
        return any(
            self.store.get_string(keys.departures)
            for keys in ks.alternate_bucket_keys(route, calendar, num, hour)
        )

    def _clear_departures(self, route: str, num: int, calendar: CalendarType, hour: int) -> None:
        """
        この時の3キーを消す。

        旧形式タグのキーにデータが残っている時は、読み込みがそちらに戻らないよう
        発車分キーを空文字で残す。
        """
        keys = ks.bucket_keys(route, calendar, num, hour)
        with self.store.batch():
            for key in keys.all():
                self.store.remove(key)
            if self._has_legacy_departures(route, num, calendar, hour):
                self.store.set_string(keys.departures, "")

    def _write_bucket(self, route: str, num: int, calendar: CalendarType, bucket: HourBucket) -> None:
        keys = ks.bucket_keys(route, calendar, num, bucket.hour)
        with self.store.batch():
            if not bucket.entries:
                self._clear_departures(route, num, calendar, bucket.hour)
                return
            blobs = encode_bucket(bucket)
            self.store.set_string(keys.departures, blobs.departures)
            self.store.set_string(keys.ride_times, blobs.ride_times)
            if blobs.train_types is None:
                self.store.remove(keys.train_types)
            else:
                self.store.set_string(keys.train_types, blobs.train_types)

    def upsert_entry(
        self,
        route: str,
        num: int,
        calendar: CalendarType,
        hour: int,
        departure: int,
        ride_time: int,
        train_type: Optional[str] = None,
    ) -> List[TimetableEntry]:
        """
        発車分をキーに追加または上書きし、並べ直して保存する。

        同じ引数で2回呼んでも保存内容は変わらない。
        種別リストも全時間帯から作り直す。
        """
        ks.check_route(route)
        ks.check_line(num)
        ks.check_hour(hour)
        if not 0 <= departure <= 59:
            raise ValueError(f"Departure minute {departure} out of range (must be 0-59)")
        if ride_time < 0:
            raise ValueError(f"Ride time {ride_time} must not be negative")
        check_train_type(train_type)

        bucket = self.load_bucket(route, num, calendar, hour)
        replaced = bucket.upsert(
            TimetableEntry(departure=departure, ride_time=ride_time, train_type=train_type or None)
        )
        with self.store.batch():
            self._write_bucket(route, num, calendar, bucket)
            self.save_train_type_list(route, num, calendar)

        logger.debug(
            "%s %s:%02d on %s line %s (%s)",
            "Updated" if replaced else "Added", hour, departure, route, num + 1, calendar.tag,
        )
        return bucket.entries

    def delete_entry(
        self, route: str, num: int, calendar: CalendarType, hour: int, departure: int
    ) -> List[TimetableEntry]:
        """発車分が一致する便を削除する。無い場合は何もしない。"""
        ks.check_route(route)
        ks.check_line(num)
        ks.check_hour(hour)
        bucket = self.load_bucket(route, num, calendar, hour)
        if not bucket.delete(departure):
            logger.debug("No departure %s:%02d to delete on %s line %s", hour, departure, route, num + 1)
            return bucket.entries
        with self.store.batch():
            self._write_bucket(route, num, calendar, bucket)
            self.save_train_type_list(route, num, calendar)
        return bucket.entries

    def save_hour_entries(
        self, route: str, num: int, calendar: CalendarType, hour: int, entries: List[TimetableEntry]
    ) -> None:
        """1時間分をまとめて置き換える（空なら3キーを消す）"""
        self._write_bucket(route, num, calendar, HourBucket(hour=hour, entries=list(entries)))

    def clear_calendar(self, route: str, num: int, calendar: CalendarType) -> None:
        """4〜25時の3キーと種別リストを削除する"""
        with self.store.batch():
            for hour in ks.TIMETABLE_HOURS:
                for key in ks.bucket_keys(route, calendar, num, hour).all():
                    self.store.remove(key)
            self.store.remove(ks.train_type_list_key(route, calendar, num))

    def clear_all(self, route: str, num: int) -> None:
        """全ダイヤ種別の時刻表と、ダイヤ種別キャッシュを削除する"""
        ks.check_route(route)
        ks.check_line(num)
        calendars = list(ALL_STANDARD) + [
            c for c in self._cached_calendar_types(route, num) if c.specific
        ]
        with self.store.batch():
            for calendar in calendars:
                self.clear_calendar(route, num, calendar)
            self.store.remove(ks.calendar_types_cache_key(route, num))
        logger.info("Cleared timetable data for %s line %s", route, num + 1)

    # ========================================================================
    # コピー
    # ========================================================================

    def copy_source_options(self, route: str, num: int, calendar: CalendarType, hour: int) -> List[ks.CopySource]:
        ks.check_route(route)
        ks.check_line(num)
        ks.check_hour(hour)
        return ks.copy_source_options(route, calendar, num, hour)

    def copy_into(self, route: str, num: int, calendar: CalendarType, hour: int, source_index: int) -> str:
        """
        コピー元候補の発車分文字列で、この時の発車分キーだけを丸ごと上書きする。

        乗車時間・列車種別のキーはコピー前の内容のまま残るので、
        呼び出し側はすぐに読み直すこと。
        """
        options = self.copy_source_options(route, num, calendar, hour)
        if not 0 <= source_index < len(options):
            raise ValueError(f"Copy source index {source_index} out of range (must be 0-{len(options) - 1})")
        option = options[source_index]
        if not option.enabled:
            raise ValueError(f"Copy source {option.label!r} is not available at hour {hour}")

        copied = self.store.get_string(option.key) or ""
        destination = ks.timetable_key(route, calendar, num, hour)
        with self.store.batch():
            if copied:
                self.store.set_string(destination, copied)
            elif self._has_legacy_departures(route, num, calendar, hour):
                self.store.set_string(destination, "")
            else:
                self.store.remove(destination)
            self.save_train_type_list(route, num, calendar)
        logger.info("Copied departures from %s into %s", option.key, destination)
        return copied

    # ========================================================================
    # 列車種別リスト
    # ========================================================================

    def _collect_train_types(self, route: str, num: int, calendar: CalendarType) -> List[str]:
        """全時間帯の種別を集め、重複を除いて並べる（種別なしの埋め草は含めない）"""
        collected: List[str] = []
        for hour in self.valid_hour_range(route, num, calendar):
            for entry in self.load_bucket(route, num, calendar, hour).entries:
                if entry.train_type and entry.train_type != DEFAULT_TRAIN_TYPE:
                    collected.append(last_component(entry.train_type))
        return sort_train_types(collected)

    def save_train_type_list(self, route: str, num: int, calendar: CalendarType) -> List[str]:
        """種別リストを全時間帯から作り直して保存する。空ならキーを消す。"""
        key = ks.train_type_list_key(route, calendar, num)
        train_types = self._collect_train_types(route, num, calendar)
        if train_types:
            self.store.set_string(key, " ".join(train_types))
        else:
            self.store.remove(key)
        return train_types

    def rebuild_train_type_cache(self, route: str, num: int, calendar: CalendarType) -> List[str]:
        """
        種別リストを返す。キャッシュが空なら全時間帯から集め直して保存する。

        並び順は種別の表示色の優先度 → 名前順。何度呼んでも結果は同じ。
        """
        keys = [ks.train_type_list_key(route, calendar, num)]
        # 主キー側に時刻表がある時は旧形式タグの種別リストを使わない
        if not self.has_timetable_data(route, num, calendar, include_legacy=False):
            keys += ks.alternate_train_type_list_keys(route, calendar, num)
        cached = self._first_non_empty(keys)
        if cached:
            return sort_train_types(last_component(t) for t in timetable_components(cached))

        train_types = self.save_train_type_list(route, num, calendar)
        logger.debug("Train types loaded for %s line %s: %d types", route, num + 1, len(train_types))
        return train_types

    # ========================================================================
    # ダイヤ種別
    # ========================================================================

    def _cached_calendar_types(self, route: str, num: int) -> List[CalendarType]:
        cached = load_json_list(self.store, ks.calendar_types_cache_key(route, num)) or []
        calendars = []
        for raw in cached:
            calendar = from_raw_value(str(raw))
            if calendar is None:
                logger.warning("Ignoring unknown cached calendar type %r", raw)
                continue
            calendars.append(calendar)
        return calendars

    def save_calendar_types_cache(self, route: str, num: int, calendars: Iterable[CalendarType]) -> None:
        raw_values = list(dict.fromkeys(c.raw_value for c in calendars))
        save_json_list(self.store, ks.calendar_types_cache_key(route, num), raw_values)

    def detect_calendar_types(self, route: str, num: int) -> List[CalendarType]:
        """実データのあるダイヤ種別（標準種別とキャッシュ中の特定日）"""
        detected: Dict[str, CalendarType] = {}
        # 旧形式タグは平日 ⇔ 曜日別で相互に読むので、検出では主キーだけを見る
        for calendar in ALL_STANDARD:
            if self.has_timetable_data(route, num, calendar, include_legacy=False):
                detected[calendar.raw_value] = calendar

        for calendar in self._cached_calendar_types(route, num):
            if not self.has_timetable_data(route, num, calendar):
                continue
            detected[calendar.raw_value] = calendar
            display = calendar.display_calendar_type()
            if display != calendar and self.has_timetable_data(route, num, display):
                detected[display.raw_value] = display

        return sorted(detected.values(), key=lambda c: c.raw_value)

    def available_calendar_types(self, route: str, num: int) -> List[CalendarType]:
        """
        この路線で選べるダイヤ種別。

        1. キャッシュのうち実データのあるもの
        2. 実データから検出したもの
        3. 平日・土休日
        """
        ks.check_route(route)
        ks.check_line(num)
        verified = [
            c for c in self._cached_calendar_types(route, num)
            if self.has_timetable_data(route, num, c)
        ]
        if verified:
            return verified

        detected = self.detect_calendar_types(route, num)
        if detected:
            return detected

        return [from_raw_value(raw) for raw in DEFAULT_AVAILABLE_RAW]

    # ========================================================================
    # 乗車時間
    # ========================================================================

    def ride_time_for(self, route: str, num: int, calendar: CalendarType, departure_hhmm: int) -> int:
        """
        HHMM の発車に対応する乗車時間。

        同じ時の同じ発車分の乗車時間 → その時の最初の乗車時間 → 路線の既定値 の順。
        """
        hour, minute = divmod(departure_hhmm, 100)
        keys = ks.bucket_keys(route, calendar, num, hour)
        ride_blob = self.store.get_string(keys.ride_times)
        departures_blob = self.store.get_string(keys.departures)

        if ride_blob and departures_blob:
            ride_times = [p.value for p in map(parse_int, timetable_components(ride_blob)) if p.ok]
            departures = [p.value for p in map(parse_int, timetable_components(departures_blob)) if p.ok]
            if minute in departures:
                index = departures.index(minute)
                if index < len(ride_times):
                    return ride_times[index]
            if ride_times:
                return ride_times[0]

        return route_settings.ride_time(self.store, route, num)

    # ========================================================================
    # 一括取り込み
    # ========================================================================

    def import_calendar(
        self, route: str, num: int, calendar: CalendarType, departures: List[ImportedDeparture]
    ) -> int:
        """
        1つのダイヤ種別の時刻表を丸ごと置き換える。

        "HH:MM" の 0〜3時 は 24〜27時 として扱い、4〜25時 の範囲外は捨てる。

        Returns:
            保存した便数
        """
        default_ride_time = route_settings.ride_time(self.store, route, num)
        by_hour: Dict[int, List[TimetableEntry]] = defaultdict(list)

        for item in departures:
            adjusted = adjusted_for_timetable(item.departure_time)
            parts = adjusted.split(":")
            hour = parse_int(parts[0]) if len(parts) == 2 else None
            minute = parse_int(parts[1]) if len(parts) == 2 else None
            if hour is None or not (hour.ok and minute.ok) or not 0 <= minute.value <= 59:
                logger.warning("Skipping departure with invalid time %r", item.departure_time)
                continue
            if hour.value not in ks.TIMETABLE_HOURS:
                logger.warning("Skipping departure %r outside hours 4-25", item.departure_time)
                continue
            try:
                check_train_type(item.train_type)
            except ValueError as e:
                logger.warning("Skipping departure %r: %s", item.departure_time, e)
                continue

            if item.ride_time is not None:
                ride_time = item.ride_time
            elif item.arrival_time:
                ride_time = calculate_ride_time(item.departure_time, item.arrival_time)
            else:
                ride_time = default_ride_time

            entry = TimetableEntry(departure=minute.value, ride_time=ride_time, train_type=item.train_type or None)
            by_hour[hour.value].append(entry)

        saved = 0
        with self.store.batch():
            self.clear_calendar(route, num, calendar)
            for hour, entries in sorted(by_hour.items()):
                self.save_hour_entries(route, num, calendar, hour, entries)
                saved += len(entries)
            self.save_train_type_list(route, num, calendar)

        logger.info(
            "Imported %d departures in %d hours for %s line %s (%s)",
            saved, len(by_hour), route, num + 1, calendar.tag,
        )
        return saved

    def import_timetable(
        self, route: str, num: int, calendar_times: Dict[CalendarType, List[ImportedDeparture]]
    ) -> int:
        """
        ダイヤ種別ごとに取り込み、取り込んだ種別をダイヤ種別キャッシュに保存する。
        """
        ks.check_route(route)
        ks.check_line(num)
        total = 0
        with self.store.batch():
            for calendar, departures in calendar_times.items():
                total += self.import_calendar(route, num, calendar, departures)
            self.save_calendar_types_cache(route, num, calendar_times.keys())
        return total
