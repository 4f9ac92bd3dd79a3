# timetable_backend/kv_store.py
"""
キー・バリューストアの契約と、テスト用のメモリ実装。

本番の永続化は database.SqlPreferenceStore（SQLite）を使う。
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, ContextManager, Dict, Iterator, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """時刻表・路線設定を保存するストア"""

    def get_string(self, key: str) -> Optional[str]: ...

    def set_string(self, key: str, value: str) -> None: ...

    def get_int(self, key: str) -> Optional[int]: ...

    def set_int(self, key: str, value: int) -> None: ...

    def contains(self, key: str) -> bool: ...

    def remove(self, key: str) -> None: ...

    def batch(self) -> ContextManager[None]: ...


def coerce_int(key: str, value: Union[str, int, None]) -> Optional[int]:
    """
    整数として読む。文字列で保存された値（同期・インポート由来）も解釈する。
    解釈できなければ None。
    """
    if value is None or isinstance(value, int):
        return value
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Stored value for %s is not an integer: %r", key, value)
        return None


# ============================================================================
# リスト（JSON 配列）の保存
# ============================================================================

def load_json_list(store: KeyValueStore, key: str) -> Optional[List[Any]]:
    """JSON 配列として読む。キーが無い・壊れている場合は None。"""
    raw = store.get_string(key)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored value for %s is not valid JSON, ignoring", key)
        return None
    if not isinstance(data, list):
        logger.warning("Stored value for %s is not a JSON array, ignoring", key)
        return None
    return data


def save_json_list(store: KeyValueStore, key: str, items: List[Any]) -> None:
    store.set_string(key, json.dumps(items, ensure_ascii=False))


# ============================================================================
# メモリ実装
# ============================================================================

class InMemoryStore:
    """
    dict ベースのストア。

    batch() 中に例外が起きた場合は batch 開始時点の内容に戻す。
    """

    def __init__(self, initial: Optional[Dict[str, Union[str, int]]] = None):
        self.data: Dict[str, Union[str, int]] = dict(initial or {})
        self._depth = 0

    def get_string(self, key: str) -> Optional[str]:
        value = self.data.get(key)
        if value is None:
            return None
        return str(value)

    def set_string(self, key: str, value: str) -> None:
        self.data[key] = value

    def get_int(self, key: str) -> Optional[int]:
        return coerce_int(key, self.data.get(key))

    def set_int(self, key: str, value: int) -> None:
        self.data[key] = int(value)

    def contains(self, key: str) -> bool:
        return key in self.data

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    @contextmanager
    def batch(self) -> Iterator[None]:
        snapshot = dict(self.data) if self._depth == 0 else None
        self._depth += 1
        try:
            yield
        except Exception:
            if snapshot is not None:
                self.data = snapshot
            raise
        finally:
            self._depth -= 1
