# timetable_backend/timetable_models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TimetableEntry:
    """1本分の発車情報"""

    # 時（バケット）内の発車分 0〜59
    departure: int
    # 乗車時間（分）
    ride_time: int
    # 列車種別（例: "Local", "odpt.TrainType:JR-East.Rapid"）
    # NOTE:
    #   - バスなど種別を持たない路線では None
    train_type: Optional[str] = None


@dataclass
class HourBucket:
    """
    1つの時刻表バケット（経路・路線・ダイヤ・時）の発車一覧。

    entries は常に発車分の数値順に並べる（"5" と "10" を文字列比較しない）。
    """

    hour: int
    entries: List[TimetableEntry] = field(default_factory=list)

    @property
    def departures(self) -> List[int]:
        return [e.departure for e in self.entries]

    def find(self, departure: int) -> Optional[int]:
        for index, entry in enumerate(self.entries):
            if entry.departure == departure:
                return index
        return None

    def sort(self) -> None:
        # 安定ソートなので同じ発車分の既存データは順序を保つ
        self.entries.sort(key=lambda e: e.departure)

    def upsert(self, entry: TimetableEntry) -> bool:
        """
        同じ発車分があれば上書き、無ければ追加して並べ直す。

        Returns:
            上書きした場合 True
        """
        index = self.find(entry.departure)
        if index is None:
            self.entries.append(entry)
            replaced = False
        else:
            self.entries[index] = entry
            replaced = True
        self.sort()
        return replaced

    def delete(self, departure: int) -> bool:
        """発車分が一致するものを削除する。無ければ何もしない。"""
        index = self.find(departure)
        if index is None:
            return False
        del self.entries[index]
        return True


@dataclass
class ImportedDeparture:
    """一括取り込み用の1本分（"HH:MM" 形式）"""

    departure_time: str
    # 到着時刻（ride_time が無いときの乗車時間計算に使う）
    arrival_time: str = ""
    ride_time: Optional[int] = None
    train_type: Optional[str] = None
