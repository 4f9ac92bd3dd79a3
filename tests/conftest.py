# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from timetable_backend.database import SqlPreferenceStore, init_db, make_engine, make_session_factory
from timetable_backend.kv_store import InMemoryStore
from timetable_backend.main import app, get_store


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'timetable.db'}")
    init_db(engine)
    yield SqlPreferenceStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def client(memory_store):
    app.dependency_overrides[get_store] = lambda: memory_store
    # startup の init_db が既定の DB を作らないよう、lifespan を起動しない
    yield TestClient(app)
    app.dependency_overrides.clear()
