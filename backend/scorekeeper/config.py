"""Настройки сервиса из переменных окружения."""
import os
from functools import lru_cache


def _flag(name: str) -> bool:
    return os.environ.get(name, "0").lower() in ("1", "true", "yes")


@lru_cache
def get_config():
    origins = [o.strip() for o in os.environ.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
    return type("Config", (), {
        "database_url": os.environ.get("DATABASE_URL", "sqlite:///./scorekeeper.db"),
        # SQL в лог, для отладки запросов
        "sql_echo": _flag("SQL_ECHO"),
        "debug": _flag("DEBUG"),
        "allowed_origins": origins or ["*"],
    })()
