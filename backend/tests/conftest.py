import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scorekeeper.db import get_db, get_session_factory, init_db, make_engine
from scorekeeper.main import app
from scorekeeper.ws_manager import manager


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    # один event loop на HTTP и WebSocket, иначе рассылка уходит в чужой loop
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    manager._by_id.clear()
    manager._by_game.clear()
