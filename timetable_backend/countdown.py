# timetable_backend/countdown.py
from __future__ import annotations

from enum import Enum

from .time_codec import countdown, minus_hhmmss, ss_to_mmss


class CountdownState(str, Enum):
    """カウントダウン表示の状態"""
    NORMAL = "normal"        # 10:00 以上
    WARNING = "warning"      # 05:00〜09:59
    URGENT = "urgent"        # 04:59 以下
    ALTERNATE = "alternate"  # 点滅の裏側（奇数秒）


COUNTDOWN_COLORS = {
    CountdownState.NORMAL: "#03DAC5",
    CountdownState.WARNING: "#FFD400",
    CountdownState.URGENT: "#E60012",
    CountdownState.ALTERNATE: "#9C9C9C",
}


def seconds_until(current_hhmmss: int, departure_hhmm: int) -> int:
    """現在時刻（HHMMSS）から発車（HHMM）までの秒数。発車済みなら翌日の同時刻まで。"""
    return minus_hhmmss(departure_hhmm * 100, current_hhmmss)


def countdown_mmss(current_hhmmss: int, departure_hhmm: int) -> int:
    return ss_to_mmss(seconds_until(current_hhmmss, departure_hhmm))


def countdown_text(current_hhmmss: int, departure_hhmm: int) -> str:
    """"MM:SS"。残りが 99:59 を超える（MMSS が 9999 より大きい）場合は "--:--"。"""
    return countdown(countdown_mmss(current_hhmmss, departure_hhmm))


def countdown_state(mmss: int) -> CountdownState:
    """
    MMSS の残り時間から表示状態を決める。

    奇数の値は残り時間に関係なく ALTERNATE（1秒ごとに点滅させる）。
    """
    if mmss % 2 == 1:
        return CountdownState.ALTERNATE
    if mmss >= 1000:
        return CountdownState.NORMAL
    if mmss >= 500:
        return CountdownState.WARNING
    return CountdownState.URGENT


def state_for(current_hhmmss: int, departure_hhmm: int) -> CountdownState:
    return countdown_state(countdown_mmss(current_hhmmss, departure_hhmm))
