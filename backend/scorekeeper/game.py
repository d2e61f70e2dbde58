"""
Логика одной партии 2v2: очки команд, ручной таймер с паузой, напоминание о смене сторон.
Функции меняют объект Game, сохраняет их вызывающий код.
"""
from datetime import datetime, timezone

from .constants import PLAYER_SLOTS, STATUS_ENDED, team_slots
from .models import Game, utcnow


class TimerStateError(ValueError):
    """Недопустимый переход таймера (пауза без запуска и т.п.)."""


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite отдаёт наивные datetime, всё храним в UTC
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _ms_between(start: datetime, end: datetime) -> int:
    return int((_aware(end) - _aware(start)).total_seconds() * 1000)


def total_score(g: Game) -> int:
    return sum(g.slot_points(slot) for slot in PLAYER_SLOTS)


def team_score(g: Game, team: str) -> int:
    s1, s2 = team_slots(team)
    return g.slot_points(s1) + g.slot_points(s2)


def add_team_points(g: Game, team: str, delta: int) -> None:
    """Прибавить delta обоим игрокам команды, не опускаясь ниже нуля."""
    for slot in team_slots(team):
        setattr(g, f"{slot}_points", max(0, g.slot_points(slot) + delta))


def set_team_points(g: Game, team: str, points: int) -> None:
    for slot in team_slots(team):
        setattr(g, f"{slot}_points", points)


def end_game(g: Game, now: datetime | None = None) -> None:
    g.status = STATUS_ENDED
    g.ended_at = now or utcnow()


def is_timer_running(g: Game) -> bool:
    return g.timer_started_at is not None and g.timer_paused_at is None


def start_timer(g: Game, now: datetime | None = None) -> None:
    g.timer_started_at = now or utcnow()
    g.timer_paused_at = None
    g.timer_total_paused_ms = 0


def pause_timer(g: Game, now: datetime | None = None) -> None:
    if not is_timer_running(g):
        raise TimerStateError("timer is not running")
    g.timer_paused_at = now or utcnow()


def resume_timer(g: Game, now: datetime | None = None) -> None:
    if g.timer_started_at is None or g.timer_paused_at is None:
        raise TimerStateError("timer is not paused")
    now = now or utcnow()
    g.timer_total_paused_ms = (g.timer_total_paused_ms or 0) + max(0, _ms_between(g.timer_paused_at, now))
    g.timer_paused_at = None


def reset_timer(g: Game, now: datetime | None = None) -> None:
    g.timer_started_at = None
    g.timer_paused_at = None
    g.timer_total_paused_ms = 0


TIMER_ACTIONS = {
    "start": start_timer,
    "pause": pause_timer,
    "resume": resume_timer,
    "reset": reset_timer,
}


def apply_timer_action(g: Game, action: str, now: datetime | None = None) -> None:
    handler = TIMER_ACTIONS.get(action)
    if handler is None:
        raise TimerStateError(f"unknown timer action: {action}")
    handler(g, now)


def timer_elapsed_ms(g: Game, now: datetime | None = None) -> int:
    """
    Время таймера без пауз. Остановленный таймер считается до момента паузы,
    у завершённой партии до ended_at.
    """
    if g.timer_started_at is None:
        return 0
    if g.timer_paused_at is not None:
        end = g.timer_paused_at
    elif g.ended_at is not None:
        end = g.ended_at
    else:
        end = now or utcnow()
    elapsed = _ms_between(g.timer_started_at, end) - (g.timer_total_paused_ms or 0)
    return max(0, elapsed)


def format_elapsed(ms: int) -> str:
    """M:SS или H:MM:SS."""
    total_seconds = ms // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def set_switch_sides_interval(g: Game, interval: int | None) -> None:
    if interval is not None and interval <= 0:
        raise ValueError("switch sides interval must be a positive number")
    g.switch_sides_interval = interval


def should_switch_sides(g: Game) -> bool:
    """Пора меняться сторонами: общий счёт > 0 и кратен интервалу."""
    if not g.switch_sides_interval:
        return False
    score = total_score(g)
    return score > 0 and score % g.switch_sides_interval == 0


def _iso(dt: datetime | None) -> str | None:
    return _aware(dt).isoformat() if dt is not None else None


def game_state_payload(g: Game, now: datetime | None = None) -> dict:
    """Собрать payload game_state для отправки клиенту."""
    elapsed = timer_elapsed_ms(g, now)
    payload = {
        "type": "game_state",
        "id": g.id,
        "status": g.status,
        "created_at": _iso(g.created_at),
        "ended_at": _iso(g.ended_at),
        "team1_points": team_score(g, "team1"),
        "team2_points": team_score(g, "team2"),
        "total_score": total_score(g),
        "switch_sides_interval": g.switch_sides_interval,
        "switch_sides": should_switch_sides(g),
        "timer": {
            "started_at": _iso(g.timer_started_at),
            "paused_at": _iso(g.timer_paused_at),
            "total_paused_ms": g.timer_total_paused_ms or 0,
            "running": is_timer_running(g),
            "elapsed_ms": elapsed,
            "display": format_elapsed(elapsed),
        },
    }
    for slot in PLAYER_SLOTS:
        payload[f"{slot}_id"] = g.slot_player_id(slot)
        payload[f"{slot}_points"] = g.slot_points(slot)
    return payload
