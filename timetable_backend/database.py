# timetable_backend/database.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Column, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import load_settings
from .kv_store import coerce_int

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = load_settings().database_url


def make_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # SQLite はデフォルトでマルチスレッド通信を許可しないため check_same_thread=False が必要
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = make_session_factory(engine)

Base = declarative_base()


class Preference(Base):
    """
    1キー1行の設定値。

    文字列と整数のどちらで保存されたかを区別するため列を分けている
    （get_int は文字列で保存された値も解釈する）。
    """
    __tablename__ = "preferences"

    key = Column(String, primary_key=True, index=True)
    str_value = Column(String, nullable=True)
    int_value = Column(Integer, nullable=True)


def init_db(bind: Optional[Engine] = None) -> None:
    """テーブルを作成する"""
    Base.metadata.create_all(bind=bind or engine)


class SqlPreferenceStore:
    """
    SQLAlchemy（SQLite）で永続化する KeyValueStore。

    batch() の中では1つのセッション・1つのトランザクションで書き込み、
    例外が起きたらロールバックして再送出する。
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self._session: Optional[Session] = None

    @contextmanager
    def _db(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return
        with self.session_factory() as db:
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise

    @contextmanager
    def batch(self) -> Iterator[None]:
        if self._session is not None:
            # 入れ子の batch は外側のトランザクションに含める
            yield
            return
        db = self.session_factory()
        self._session = db
        try:
            yield
            db.commit()
        except Exception:
            logger.error("Batch write failed, rolling back")
            db.rollback()
            raise
        finally:
            self._session = None
            db.close()

    def _get(self, db: Session, key: str) -> Optional[Preference]:
        return db.query(Preference).filter(Preference.key == key).first()

    def get_string(self, key: str) -> Optional[str]:
        with self._db() as db:
            row = self._get(db, key)
            if row is None:
                return None
            if row.str_value is not None:
                return row.str_value
            if row.int_value is not None:
                return str(row.int_value)
            return None

    def set_string(self, key: str, value: str) -> None:
        with self._db() as db:
            db.merge(Preference(key=key, str_value=value, int_value=None))
            db.flush()

    def get_int(self, key: str) -> Optional[int]:
        with self._db() as db:
            row = self._get(db, key)
            if row is None:
                return None
            if row.int_value is not None:
                return row.int_value
            return coerce_int(key, row.str_value)

    def set_int(self, key: str, value: int) -> None:
        with self._db() as db:
            db.merge(Preference(key=key, str_value=None, int_value=int(value)))
            db.flush()

    def contains(self, key: str) -> bool:
        with self._db() as db:
            return self._get(db, key) is not None

    def remove(self, key: str) -> None:
        with self._db() as db:
            db.query(Preference).filter(Preference.key == key).delete()
