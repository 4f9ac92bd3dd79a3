# timetable_backend/main.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from . import key_space as ks
from . import route_settings
from .calendar_types import CalendarType, from_tag_or_raw, resolve_for_date
from .config import get_route_config, load_settings
from .countdown import COUNTDOWN_COLORS
from .database import SqlPreferenceStore, init_db
from .kv_store import KeyValueStore
from .route_planner import plan_route
from .timetable_models import ImportedDeparture, TimetableEntry
from .timetable_store import TimetableStore
from .train_types import classify, color_for, priority_for

load_dotenv()
settings = load_settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Timetable backend")


@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info("Database initialized: %s", settings.database_url)


# CORS 設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_urls,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> KeyValueStore:
    """リクエストごとのストア（テストでは dependency_overrides で差し替える）"""
    return SqlPreferenceStore()


# ============================================================================
# リクエスト / レスポンス
# ============================================================================

class EntryIn(BaseModel):
    departure: int = Field(..., ge=0, le=59)
    ride_time: int = Field(..., ge=0)
    train_type: Optional[str] = Field(None, pattern=r"^\S*$")


class CopyIn(BaseModel):
    source_index: int = Field(..., ge=0, le=5)


class ImportedDepartureIn(BaseModel):
    departure_time: str
    arrival_time: str = ""
    ride_time: Optional[int] = Field(None, ge=0)
    train_type: Optional[str] = None


class ImportIn(BaseModel):
    # ダイヤ種別の生 ID（またはタグ）→ 発車一覧
    calendars: Dict[str, List[ImportedDepartureIn]]


def entry_to_dict(entry: TimetableEntry) -> Dict[str, Any]:
    return {
        "departure": entry.departure,
        "ride_time": entry.ride_time,
        "train_type": entry.train_type,
        "color": color_for(entry.train_type).value if entry.train_type else None,
    }


def calendar_to_dict(calendar: CalendarType) -> Dict[str, Any]:
    return {
        "raw_value": calendar.raw_value,
        "tag": calendar.tag,
        "display_name": calendar.display_name,
        "specific": calendar.specific,
    }


# ============================================================================
# パスパラメータの解決
# ============================================================================

def resolve_route(route: str) -> str:
    if get_route_config(route) is None:
        raise HTTPException(status_code=404, detail=f"Route not found: {route}")
    return route


def resolve_line(num: int) -> int:
    """URL は 1 始まり、内部は 0 始まり"""
    if num - 1 not in ks.LINE_SLOTS:
        raise HTTPException(status_code=404, detail=f"Line not found: {num}")
    return num - 1


def resolve_calendar(value: str) -> CalendarType:
    calendar = from_tag_or_raw(value)
    if calendar is None:
        raise HTTPException(status_code=404, detail=f"Calendar type not found: {value}")
    return calendar


def resolve_hour(hour: int) -> int:
    if hour not in ks.TIMETABLE_HOURS:
        raise HTTPException(
            status_code=422,
            detail=f"Hour {hour} out of range (must be {ks.FIRST_HOUR}-{ks.LAST_HOUR})",
        )
    return hour


# ============================================================================
# エンドポイント
# ============================================================================

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/routes/{route}")
def get_route(route: str, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    conf = get_route_config(route)
    summary = route_settings.load_route_settings(store, route)
    return {
        "route": route,
        "label": conf.label,
        "is_back": conf.is_back,
        **summary.model_dump(),
        "line_names": route_settings.line_name_array(store, route),
        "line_colors": route_settings.line_color_array(store, route),
        "line_kinds": [k.value for k in route_settings.line_kind_array(store, route)],
        "stations": route_settings.station_array(store, route),
        "transportations": route_settings.transportation_array(store, route),
        "transfer_times": route_settings.transfer_time_array(store, route),
    }


@app.get("/api/routes/{route}/lines/{num}")
def get_line(route: str, num: int, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    return route_settings.load_line_settings(store, route, slot).model_dump()


@app.put("/api/routes/{route}/lines/{num}")
def put_line(
    route: str,
    num: int,
    body: route_settings.LineSettings,
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    slot = resolve_line(num)
    route_settings.save_line_settings(store, route, slot, body)
    return route_settings.load_line_settings(store, route, slot).model_dump()


@app.get("/api/routes/{route}/transfers/{num}")
def get_transfer(route: str, num: int, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    if num not in ks.TRANSFER_SLOTS:
        raise HTTPException(status_code=404, detail=f"Transfer not found: {num}")
    return route_settings.load_transfer_settings(store, route, num).model_dump()


@app.put("/api/routes/{route}/transfers/{num}")
def put_transfer(
    route: str,
    num: int,
    body: route_settings.TransferSettings,
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    if num not in ks.TRANSFER_SLOTS:
        raise HTTPException(status_code=404, detail=f"Transfer not found: {num}")
    route_settings.save_transfer_settings(store, route, num, body)
    return route_settings.load_transfer_settings(store, route, num).model_dump()


@app.get("/api/routes/{route}/lines/{num}/calendars")
def get_calendars(route: str, num: int, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    calendars = TimetableStore(store).available_calendar_types(route, slot)
    return {"calendars": [calendar_to_dict(c) for c in calendars]}


@app.get("/api/routes/{route}/lines/{num}/timetable/{calendar}")
def get_timetable_hours(route: str, num: int, calendar: str, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    counts = TimetableStore(store).hour_entry_counts(route, slot, cal)
    return {
        "calendar": calendar_to_dict(cal),
        "hours": [{"hour": hour, "count": count} for hour, count in counts.items()],
    }


@app.get("/api/routes/{route}/lines/{num}/timetable/{calendar}/train-types")
def get_train_types(route: str, num: int, calendar: str, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    train_types = TimetableStore(store).rebuild_train_type_cache(route, slot, cal)
    return {
        "train_types": [
            {"name": t, "color": color_for(t).value, "priority": priority_for(t)}
            for t in train_types
        ]
    }


@app.get("/api/routes/{route}/lines/{num}/timetable/{calendar}/{hour}")
def get_hour(route: str, num: int, calendar: str, hour: int, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    hour = resolve_hour(hour)
    entries = TimetableStore(store).load_entries(route, slot, cal, hour)
    return {"hour": hour, "entries": [entry_to_dict(e) for e in entries]}


@app.post("/api/routes/{route}/lines/{num}/timetable/{calendar}/{hour}")
def post_entry(
    route: str,
    num: int,
    calendar: str,
    hour: int,
    body: EntryIn,
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    hour = resolve_hour(hour)
    try:
        entries = TimetableStore(store).upsert_entry(
            route, slot, cal, hour, body.departure, body.ride_time, body.train_type
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"hour": hour, "entries": [entry_to_dict(e) for e in entries]}


@app.delete("/api/routes/{route}/lines/{num}/timetable/{calendar}/{hour}/{minute}")
def delete_entry(
    route: str,
    num: int,
    calendar: str,
    hour: int,
    minute: int,
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    hour = resolve_hour(hour)
    entries = TimetableStore(store).delete_entry(route, slot, cal, hour, minute)
    return {"hour": hour, "entries": [entry_to_dict(e) for e in entries]}


@app.get("/api/routes/{route}/lines/{num}/timetable/{calendar}/{hour}/copy-sources")
def get_copy_sources(
    route: str, num: int, calendar: str, hour: int, store: KeyValueStore = Depends(get_store)
):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    hour = resolve_hour(hour)
    options = TimetableStore(store).copy_source_options(route, slot, cal, hour)
    return {
        "sources": [
            {"index": o.index, "label": o.label, "enabled": o.enabled}
            for o in options
        ]
    }


@app.post("/api/routes/{route}/lines/{num}/timetable/{calendar}/{hour}/copy")
def post_copy(
    route: str,
    num: int,
    calendar: str,
    hour: int,
    body: CopyIn,
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    slot = resolve_line(num)
    cal = resolve_calendar(calendar)
    hour = resolve_hour(hour)
    timetable = TimetableStore(store)
    try:
        copied = timetable.copy_into(route, slot, cal, hour, body.source_index)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    # コピー後は必ず読み直して返す
    entries = timetable.load_entries(route, slot, cal, hour)
    return {"hour": hour, "copied": copied, "entries": [entry_to_dict(e) for e in entries]}


@app.post("/api/routes/{route}/lines/{num}/import")
def post_import(route: str, num: int, body: ImportIn, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    calendar_times: Dict[CalendarType, List[ImportedDeparture]] = {}
    for raw, items in body.calendars.items():
        cal = resolve_calendar(raw)
        calendar_times[cal] = [ImportedDeparture(**item.model_dump()) for item in items]
    saved = TimetableStore(store).import_timetable(route, slot, calendar_times)
    return {"imported": saved, "calendars": [calendar_to_dict(c) for c in calendar_times]}


@app.delete("/api/routes/{route}/lines/{num}/timetable")
def delete_timetable(route: str, num: int, store: KeyValueStore = Depends(get_store)):
    route = resolve_route(route)
    slot = resolve_line(num)
    TimetableStore(store).clear_all(route, slot)
    return {"status": "cleared"}


@app.get("/api/calendar/resolve")
def get_calendar_for_date(
    date_: date = Query(..., alias="date"),
    available: Optional[List[str]] = Query(None),
):
    """
    日付とデータのあるダイヤ種別から、表示するダイヤ種別を返す。

    available はカンマ区切りでも、クエリの繰り返しでも受け付ける。
    """
    raw_values: List[str] = []
    for value in available or []:
        raw_values += [v.strip() for v in value.split(",") if v.strip()]

    calendars = []
    for raw in raw_values:
        cal = from_tag_or_raw(raw)
        if cal is None:
            raise HTTPException(status_code=422, detail=f"Unknown calendar type: {raw}")
        calendars.append(cal)
    return calendar_to_dict(resolve_for_date(date_, calendars))


@app.get("/api/train-types/{raw}")
async def get_train_type(raw: str):
    bucket = classify(raw)
    return {
        "raw": raw,
        "type": bucket.value,
        "color": color_for(raw).value,
        "priority": priority_for(raw),
    }


@app.get("/api/routes/{route}/plan")
def get_plan(
    route: str,
    at: Optional[datetime] = Query(None),
    store: KeyValueStore = Depends(get_store),
):
    route = resolve_route(route)
    tz = ZoneInfo(settings.timezone)
    if at is None:
        at = datetime.now(tz)

    # タイムゾーン付きの時刻は plan_route が tz の壁時計に直す
    plan = plan_route(store, route, at, tz=tz)
    return {
        "route": plan.route,
        "service_date": plan.service_date.isoformat(),
        "current_time": plan.current_time,
        "calendars": [calendar_to_dict(c) for c in plan.calendars],
        "times": plan.times,
        "display_times": plan.display_times,
        "countdown": plan.countdown,
        "countdown_state": plan.countdown_state.value if plan.countdown_state else None,
        "countdown_color": COUNTDOWN_COLORS[plan.countdown_state] if plan.countdown_state else None,
    }
