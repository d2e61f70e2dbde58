"""
Подключение к базе: SQLAlchemy engine, фабрика сессий и зависимость get_db для FastAPI.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .config import get_config


class Base(DeclarativeBase):
    pass


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, **kwargs)
    if url.startswith("sqlite"):
        # SQLite не включает внешние ключи сам, а нам нужен ON DELETE SET NULL
        event.listen(eng, "connect", _enable_sqlite_fk)
    return eng


def _enable_sqlite_fk(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = make_engine(get_config().database_url, echo=get_config().sql_echo)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    """Создать таблицы, если их ещё нет."""
    from . import models  # noqa: F401  регистрирует таблицы в Base.metadata

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Сессия на один запрос; закрывается всегда, транзакциями управляет обработчик."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Фабрика сессий для долгих соединений (WebSocket): сессия открывается на каждое сообщение."""
    return SessionLocal
