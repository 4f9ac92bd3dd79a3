# timetable_backend/bucket_codec.py
"""
HourBucket と保存形式（空白区切りの3本の文字列）の相互変換。

保存形式:
  発車分    "05 10 15"
  乗車時間  "18 20 20"
  列車種別  "Rapid Local Local"（種別を持たない路線ではキー自体が無い）

3本の長さがずれていても読み込み側で補完する（途中で書き込みが中断したデータなど）。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .time_codec import add_zero_time, parse_int, timetable_components
from .timetable_models import HourBucket, TimetableEntry
from .train_types import DEFAULT_TRAIN_TYPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketBlobs:
    departures: str
    ride_times: str
    # None の場合は列車種別のキーを削除する
    train_types: Optional[str]


def decode_bucket(
    hour: int,
    departures_blob: Optional[str],
    ride_times_blob: Optional[str],
    train_types_blob: Optional[str],
    default_ride_time: int,
) -> HourBucket:
    """
    保存文字列から HourBucket を組み立てる。例外は投げない。

    - 発車分の壊れたトークンは捨てる（0分発として扱わない）
    - 乗車時間が足りない・壊れている位置は路線の既定乗車時間
    - 列車種別が足りない・空の位置は None
    """
    bucket = HourBucket(hour=hour)
    if not departures_blob:
        return bucket

    departures = timetable_components(departures_blob)
    ride_tokens = timetable_components(ride_times_blob or "")
    train_tokens = timetable_components(train_types_blob or "")

    if ride_tokens and len(ride_tokens) != len(departures):
        logger.debug(
            "Ride time count %d differs from departure count %d at hour %s, padding with default",
            len(ride_tokens), len(departures), hour,
        )

    for index, token in enumerate(departures):
        parsed = parse_int(token)
        if not parsed.ok or not 0 <= parsed.value <= 59:
            logger.warning("Dropping malformed departure token %r at hour %s", token, hour)
            continue

        if index < len(ride_tokens):
            ride = parse_int(ride_tokens[index], default_ride_time)
            if ride.status == "malformed":
                logger.warning(
                    "Malformed ride time token %r at hour %s, using default %s",
                    ride_tokens[index], hour, default_ride_time,
                )
            ride_time = ride.value
        else:
            ride_time = default_ride_time

        train_type = train_tokens[index] if index < len(train_tokens) else None

        bucket.entries.append(
            TimetableEntry(departure=parsed.value, ride_time=ride_time, train_type=train_type)
        )

    bucket.sort()
    return bucket


def encode_bucket(bucket: HourBucket) -> BucketBlobs:
    """
    HourBucket を保存文字列にする。

    発車分・乗車時間は2桁ゼロ埋め。どの便も種別を持たなければ種別キーは書かない。
    一部の便だけ種別が無い場合は位置がずれないよう既定種別で埋める。
    """
    entries = sorted(bucket.entries, key=lambda e: e.departure)
    departures = " ".join(add_zero_time(e.departure) for e in entries)
    ride_times = " ".join(add_zero_time(e.ride_time) for e in entries)

    if any(e.train_type for e in entries):
        train_types: Optional[str] = " ".join(e.train_type or DEFAULT_TRAIN_TYPE for e in entries)
    else:
        train_types = None

    return BucketBlobs(departures=departures, ride_times=ride_times, train_types=train_types)
