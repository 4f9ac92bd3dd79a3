# timetable_backend/time_codec.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

# 1日の秒数
DAY_SECONDS = 86400

# 「これ以上の発車なし」を表す HHMM 値（27:00）
NO_DEPARTURE = 2700

# 時刻を表示できないときのプレースホルダ
NO_TIME_TEXT = "--:--"

# 04:00 から新しい「サービス日」が始まる（0〜3時台は 24〜27 時として扱う）
SERVICE_DAY_START_HOUR = 4


# ============================================================================
# パース結果
# ============================================================================

ParseStatus = Literal["ok", "absent", "malformed"]


@dataclass(frozen=True)
class ParsedInt:
    """
    文字列トークンを整数に変換した結果。

    呼び出し側は例外を受け取らず、status を見て
    「値なしで既定値を使った」のか「壊れた値で既定値を使った」のかを区別できる。
    """
    value: int
    status: ParseStatus

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def parse_int(token: Optional[str], default: int = 0) -> ParsedInt:
    """
    トークンを整数に変換する。例外は投げない。

    - None / 空文字 / 空白のみ → status="absent", value=default
    - 数字として解釈できない → status="malformed", value=default
    - "0" や "00" は正当な 0 として status="ok"
    """
    if token is None:
        return ParsedInt(default, "absent")
    text = token.strip()
    if not text:
        return ParsedInt(default, "absent")
    try:
        return ParsedInt(int(text), "ok")
    except ValueError:
        return ParsedInt(default, "malformed")


# ============================================================================
# 表示用ユーティリティ
# ============================================================================

def add_zero_time(value: int) -> str:
    """0〜9 のときだけ先頭に 0 を付ける（"5" -> "05"）"""
    return f"0{value}" if 0 <= value <= 9 else str(value)


def timetable_hour(hour: int) -> int:
    """時刻表上の時（0〜3時 は 24〜27時 として扱う）"""
    return hour if hour > 3 else hour + 24


def time_hh(hhmm: int) -> str:
    return add_zero_time(hhmm // 100 + (hhmm % 100) // 60)


def time_mm(hhmm: int) -> str:
    return add_zero_time(hhmm % 100 % 60)


def string_time(hhmm: int) -> str:
    """
    HHMM を "HH:MM" で返す。

    27:00 は「この先の発車なし」を意味するので時刻ではなく "--:--" を返す。
    """
    text = f"{time_hh(hhmm)}:{time_mm(hhmm)}"
    return text if text != "27:00" else NO_TIME_TEXT


# ============================================================================
# 秒・分・HHMMSS・MMSS の相互変換
# ============================================================================

def mmss_to_ss(mmss: int) -> int:
    return mmss // 100 * 60 + mmss % 100


def ss_to_mmss(seconds: int) -> int:
    return (seconds // 60) * 100 + seconds % 60


def ss_to_hhmmss(seconds: int) -> int:
    return (seconds // 3600) * 10000 + ((seconds % 3600) // 60) * 100 + seconds % 60


def hhmmss_to_ss(hhmmss: int) -> int:
    return hhmmss // 10000 * 3600 + (hhmmss % 10000) // 100 * 60 + hhmmss % 100


def hhmmss_to_mmss(hhmmss: int) -> int:
    return (hhmmss // 10000 * 60 + (hhmmss % 10000) // 100) * 100 + hhmmss % 100


def minus_hhmmss(a: int, b: int) -> int:
    """
    HHMMSS 同士の引き算。結果は秒で返す。

    a < b のときは日付を跨いだとみなし、常に [0, 86400) の
    「次に a が来るまでの残り秒数」になる。
    """
    diff = hhmmss_to_ss(a) - hhmmss_to_ss(b)
    if diff < 0:
        return (diff + DAY_SECONDS) % DAY_SECONDS
    return diff


def hhmm_to_mm(hhmm: int) -> int:
    return hhmm // 100 * 60 + hhmm % 100


def mm_to_hhmm(minutes: int) -> int:
    return (minutes // 60) * 100 + minutes % 60


def plus_hhmm(a: int, b: int) -> int:
    """HHMM に HHMM（分だけなら 0〜59）を足す"""
    return mm_to_hhmm(hhmm_to_mm(a) + hhmm_to_mm(b))


def minus_hhmm(a: int, b: int) -> int:
    """HHMM の引き算。a < b のときは a を翌日（+24h）として扱う。"""
    if hhmm_to_mm(a) < hhmm_to_mm(b):
        return mm_to_hhmm(hhmm_to_mm(a + 2400) - hhmm_to_mm(b))
    return mm_to_hhmm(hhmm_to_mm(a) - hhmm_to_mm(b))


def over_time(value: int, before_time: int) -> int:
    """
    計算結果を 27:00 で頭打ちにする。

    基準時刻 before_time が既に 27:00 のときは、日跨ぎで小さな値に
    戻ってしまった結果でも 27:00 に固定する。
    """
    if before_time == NO_DEPARTURE:
        return NO_DEPARTURE
    if value > NO_DEPARTURE:
        return NO_DEPARTURE
    return value


def countdown(mmss: int) -> str:
    """MMSS を "MM:SS" で返す。0〜9999 の範囲外は "--:--"。"""
    if 0 <= mmss <= 9999:
        return f"{add_zero_time(mmss // 100)}:{add_zero_time(mmss % 100)}"
    return NO_TIME_TEXT


# ============================================================================
# 文字列の時刻
# ============================================================================

def adjusted_for_timetable(text: str) -> str:
    """"HH:MM" の 0〜3時 を 24〜27時 に読み替える。解釈できなければそのまま。"""
    parts = text.split(":")
    if len(parts) != 2:
        return text
    hour = parse_int(parts[0])
    minute = parse_int(parts[1])
    if not (hour.ok and minute.ok):
        return text
    adjusted = hour.value + 24 if 0 <= hour.value <= 3 else hour.value
    return f"{add_zero_time(adjusted)}:{add_zero_time(minute.value)}"


def timetable_components(blob: str) -> List[str]:
    """空白区切りの時刻表文字列を、空要素を除いたトークンのリストにする"""
    return [token for token in blob.split(" ") if token]


def calculate_ride_time(departure: str, arrival: str) -> int:
    """
    "HH:MM" の発車・到着から乗車時間（分）を求める。

    到着が発車より前なら翌日到着とみなす。解釈できない場合は 0。
    """
    dep = departure.split(":")
    arr = arrival.split(":")
    if len(dep) != 2 or len(arr) != 2:
        return 0
    values = [parse_int(part) for part in (*dep, *arr)]
    if not all(v.ok for v in values):
        return 0
    dep_minutes = values[0].value * 60 + values[1].value
    arr_minutes = values[2].value * 60 + values[3].value
    if arr_minutes >= dep_minutes:
        return arr_minutes - dep_minutes
    return 24 * 60 - dep_minutes + arr_minutes
