# timetable_backend/config.py
"""
アプリ設定と経路（go1 / go2 / back1 / back2）の定義。

環境変数は .env からも読み込む（python-dotenv）。
"""
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# プロジェクトルートの timetable.db を既定にする
BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DB_PATH = BASE_DIR / "timetable.db"

_default_origins = "http://localhost:5173"


class AppSettings(BaseModel):
    """環境変数から組み立てるアプリ設定"""
    database_url: str
    frontend_urls: List[str]
    log_level: str = "INFO"
    timezone: str = "Asia/Tokyo"


def load_settings() -> AppSettings:
    """
    .env と環境変数から設定を読み込む。

    - TIMETABLE_DATABASE_URL: SQLAlchemy の接続 URL
    - FRONTEND_URL: CORS で許可するオリジン（カンマ区切り）
    - LOG_LEVEL: ログレベル
    - TIMETABLE_TZ: 「今」の判定に使うタイムゾーン
    """
    load_dotenv()
    raw_origins = os.getenv("FRONTEND_URL", _default_origins)
    return AppSettings(
        database_url=os.getenv("TIMETABLE_DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}"),
        frontend_urls=[o.strip() for o in raw_origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        timezone=os.getenv("TIMETABLE_TZ", "Asia/Tokyo"),
    )


class RouteDirectionConfig(BaseModel):
    """経路ごとの設定"""
    label: str               # 表示名
    is_back: bool            # 帰り経路か（出発地と目的地が入れ替わる）
    other_route: str         # コピー元候補に使うもう一方の経路
    default_departure: str   # 出発地の既定名
    default_destination: str # 目的地の既定名


# サポートする経路の定義
ROUTE_DIRECTIONS: Dict[str, RouteDirectionConfig] = {
    "back1": RouteDirectionConfig(
        label="Return route 1",
        is_back=True,
        other_route="back2",
        default_departure="Office",
        default_destination="Home",
    ),
    "back2": RouteDirectionConfig(
        label="Return route 2",
        is_back=True,
        other_route="back1",
        default_departure="Office",
        default_destination="Home",
    ),
    "go1": RouteDirectionConfig(
        label="Outbound route 1",
        is_back=False,
        other_route="go2",
        default_departure="Home",
        default_destination="Office",
    ),
    "go2": RouteDirectionConfig(
        label="Outbound route 2",
        is_back=False,
        other_route="go1",
        default_departure="Home",
        default_destination="Office",
    ),
}


def get_route_config(route_id: str) -> Optional[RouteDirectionConfig]:
    """
    経路IDから設定を取得する。

    Args:
        route_id: URL パラメータの経路ID (例: "go1", "back2")

    Returns:
        対応する RouteDirectionConfig、未サポートの場合は None
    """
    return ROUTE_DIRECTIONS.get(route_id)
