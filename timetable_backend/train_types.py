# timetable_backend/train_types.py
"""
列車種別の分類と表示色・並び順。

ODPT の種別 ID（例: "odpt.TrainType:JR-East.ChuoSpecialRapid"）の最後の要素で判定し、
知らない種別は UNKNOWN（白、並び順は最後）に落とす。
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class DisplayTrainType(Enum):
    # 手入力時の既定種別
    DEFAULT_LOCAL = "defaultLocal"
    DEFAULT_EXPRESS = "defaultExpress"
    DEFAULT_RAPID = "defaultRapid"
    DEFAULT_SPECIAL_RAPID = "defaultSpecialRapid"
    DEFAULT_LIMITED_EXPRESS = "defaultLimitedExpress"

    # ODPT の種別
    LOCAL = "Local"
    RAPID = "Rapid"
    SEMI_EXPRESS = "SemiExpress"
    EXPRESS = "Express"
    COMMUTER_EXPRESS = "CommuterExpress"
    COMMUTER_SEMI_EXPRESS = "CommuterSemiExpress"
    COMMUTER_RAPID = "CommuterRapid"
    COMMUTER_LIMITED_EXPRESS = "CommuterLimitedExpress"
    RAPID_EXPRESS = "RapidExpress"
    RAPID_LIMITED_EXPRESS = "RapidLimitedExpress"
    LIMITED_EXPRESS = "LimitedExpress"
    ACCESS_EXPRESS = "AccessExpress"
    AIRPORT_RAPID_LIMITED_EXPRESS = "AirportRapidLimitedExpress"
    KAWAGOE_LIMITED_EXPRESS = "KawagoeLimitedExpress"
    SPECIAL_RAPID = "SpecialRapid"
    COMMUTER_SPECIAL_RAPID = "CommuterSpecialRapid"
    CHUO_SPECIAL_RAPID = "ChuoSpecialRapid"
    OME_SPECIAL_RAPID = "OmeSpecialRapid"
    SECTION_EXPRESS = "SectionExpress"
    SECTION_SEMI_EXPRESS = "SectionSemiExpress"
    SEMI_RAPID = "SemiRapid"

    # ライナー・有料列車
    LINER = "Liner"
    F_LINER = "FLiner"
    TH_LINER = "ThLiner"
    TJ_LINER = "TjLiner"
    HAIJIMA_LINER = "HaijimaLiner"
    S_TRAIN = "STrain"
    SL_TAIJU = "SlTaiju"
    EVENING_WING = "EveningWing"
    MORNING_WING = "MorningWing"

    UNKNOWN = "Unknown"


class TrainTypeColor(Enum):
    """表示色（値はカラーコード）"""
    WHITE = "#FFFFFF"
    YELLOW_GREEN = "#9ACD32"
    YELLOW = "#FFD400"
    ORANGE = "#F58220"
    PINK = "#E85298"
    LIGHT_BLUE = "#00BFFF"


_COLOR_GROUPS: Dict[TrainTypeColor, List[DisplayTrainType]] = {
    TrainTypeColor.WHITE: [
        DisplayTrainType.DEFAULT_LOCAL,
        DisplayTrainType.LOCAL,
        DisplayTrainType.UNKNOWN,
    ],
    TrainTypeColor.YELLOW_GREEN: [
        DisplayTrainType.DEFAULT_EXPRESS,
        DisplayTrainType.EXPRESS,
        DisplayTrainType.SEMI_EXPRESS,
        DisplayTrainType.SECTION_EXPRESS,
        DisplayTrainType.SECTION_SEMI_EXPRESS,
        DisplayTrainType.COMMUTER_EXPRESS,
        DisplayTrainType.COMMUTER_SEMI_EXPRESS,
    ],
    TrainTypeColor.YELLOW: [
        DisplayTrainType.DEFAULT_RAPID,
        DisplayTrainType.RAPID,
        DisplayTrainType.RAPID_EXPRESS,
        DisplayTrainType.SEMI_RAPID,
        DisplayTrainType.COMMUTER_RAPID,
    ],
    TrainTypeColor.ORANGE: [
        DisplayTrainType.DEFAULT_SPECIAL_RAPID,
        DisplayTrainType.SPECIAL_RAPID,
        DisplayTrainType.COMMUTER_SPECIAL_RAPID,
        DisplayTrainType.CHUO_SPECIAL_RAPID,
        DisplayTrainType.OME_SPECIAL_RAPID,
        DisplayTrainType.ACCESS_EXPRESS,
        DisplayTrainType.AIRPORT_RAPID_LIMITED_EXPRESS,
        DisplayTrainType.KAWAGOE_LIMITED_EXPRESS,
        DisplayTrainType.F_LINER,
        DisplayTrainType.RAPID_LIMITED_EXPRESS,
    ],
    TrainTypeColor.PINK: [
        DisplayTrainType.DEFAULT_LIMITED_EXPRESS,
        DisplayTrainType.LIMITED_EXPRESS,
        DisplayTrainType.COMMUTER_LIMITED_EXPRESS,
    ],
    TrainTypeColor.LIGHT_BLUE: [
        DisplayTrainType.LINER,
        DisplayTrainType.TH_LINER,
        DisplayTrainType.TJ_LINER,
        DisplayTrainType.HAIJIMA_LINER,
        DisplayTrainType.S_TRAIN,
        DisplayTrainType.SL_TAIJU,
        DisplayTrainType.EVENING_WING,
        DisplayTrainType.MORNING_WING,
    ],
}

TRAIN_TYPE_COLORS: Dict[DisplayTrainType, TrainTypeColor] = {
    train_type: color
    for color, members in _COLOR_GROUPS.items()
    for train_type in members
}

# 色ごとの並び順
COLOR_PRIORITY: Dict[TrainTypeColor, int] = {
    TrainTypeColor.WHITE: 0,
    TrainTypeColor.YELLOW_GREEN: 1,
    TrainTypeColor.YELLOW: 2,
    TrainTypeColor.ORANGE: 3,
    TrainTypeColor.PINK: 4,
    TrainTypeColor.LIGHT_BLUE: 5,
}

# 未知の種別は色は白でも並び順は最後
UNKNOWN_PRIORITY = 999

DEFAULT_TRAIN_TYPE = DisplayTrainType.DEFAULT_LOCAL.value


def _normalize(text: str) -> str:
    return text.replace("-", "").replace("_", "").lower()


_BY_NORMALIZED: Dict[str, DisplayTrainType] = {}
for _member in DisplayTrainType:
    _BY_NORMALIZED[_normalize(_member.name)] = _member
    _BY_NORMALIZED[_normalize(_member.value)] = _member


def last_component(raw: str) -> str:
    """ODPT ID の最後の "." 区切り要素"""
    return raw.split(".")[-1]


def check_train_type(raw: Optional[str]) -> Optional[str]:
    """種別は空白区切りの文字列に保存するので、空白を含む種別は受け付けない"""
    if raw and any(ch.isspace() for ch in raw):
        raise ValueError(f"Train type {raw!r} must not contain whitespace")
    return raw


def classify(raw: Optional[str]) -> DisplayTrainType:
    """
    種別 ID を DisplayTrainType に分類する。

    最後の要素を列挙名（大文字・"-" → "_"）、値、大文字小文字と区切りを
    無視した表記の順に照合し、どれにも当たらなければ UNKNOWN。
    """
    if not raw:
        return DisplayTrainType.UNKNOWN
    last = last_component(raw)

    member = DisplayTrainType.__members__.get(last.upper().replace("-", "_"))
    if member is not None:
        return member
    for candidate in DisplayTrainType:
        if candidate.value == last:
            return candidate
    member = _BY_NORMALIZED.get(_normalize(last))
    if member is not None:
        return member

    logger.debug("Unknown train type %r", raw)
    return DisplayTrainType.UNKNOWN


def color_for(raw: Optional[str]) -> TrainTypeColor:
    return TRAIN_TYPE_COLORS[classify(raw)]


def priority(bucket: DisplayTrainType) -> int:
    """表示の並び順（小さいほど先）"""
    if bucket is DisplayTrainType.UNKNOWN:
        return UNKNOWN_PRIORITY
    return COLOR_PRIORITY[TRAIN_TYPE_COLORS[bucket]]


def priority_for(raw: Optional[str]) -> int:
    return priority(classify(raw))


def sort_train_types(train_types: Iterable[str]) -> List[str]:
    """重複を除き、並び順 → 名前順でソートする"""
    unique = list(dict.fromkeys(train_types))
    return sorted(unique, key=lambda t: (priority_for(t), t))
