# timetable_backend/import_data.py
"""
JSON ファイルから時刻表を一括取り込みする。

    python -m timetable_backend.import_data go1 1 data/go1_line1.json

JSON の形式:
    {
      "odpt.Calendar:Weekday": [
        {"departure_time": "08:10", "arrival_time": "08:28", "train_type": "odpt.TrainType:JR-East.Rapid"},
        ...
      ],
      "weekend": [...]
    }
"""
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .calendar_types import CalendarType, from_tag_or_raw
from .database import SqlPreferenceStore, init_db
from .kv_store import KeyValueStore
from .timetable_models import ImportedDeparture
from .timetable_store import TimetableStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_calendar_times(data: Dict[str, Any]) -> Dict[CalendarType, List[ImportedDeparture]]:
    calendar_times: Dict[CalendarType, List[ImportedDeparture]] = {}
    for raw, items in data.items():
        calendar = from_tag_or_raw(raw)
        if calendar is None:
            logger.warning("Skipping unknown calendar type %r", raw)
            continue

        departures = []
        for item in items:
            departure_time = item.get("departure_time")
            if not departure_time:
                continue
            departures.append(
                ImportedDeparture(
                    departure_time=departure_time,
                    arrival_time=item.get("arrival_time", ""),
                    ride_time=item.get("ride_time"),
                    train_type=item.get("train_type"),
                )
            )
        calendar_times[calendar] = departures
    return calendar_times


def import_file(store: KeyValueStore, route: str, num: int, json_path: Path) -> int:
    """
    Args:
        num: 路線スロット（0 始まり）

    Returns:
        保存した便数
    """
    if not json_path.exists():
        raise FileNotFoundError(f"File not found: {json_path}")

    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object keyed by calendar type: {json_path}")

    calendar_times = parse_calendar_times(data)
    return TimetableStore(store).import_timetable(route, num, calendar_times)


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 3:
        print("usage: python -m timetable_backend.import_data <route> <line 1-3> <json>", file=sys.stderr)
        return 2

    route, line, path = args
    logger.info("Initializing database...")
    init_db()

    try:
        saved = import_file(SqlPreferenceStore(), route, int(line) - 1, Path(path))
    except (OSError, ValueError) as e:
        logger.error("Import failed: %s", e)
        return 1

    logger.info("Imported %d departures for %s line %s.", saved, route, line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
