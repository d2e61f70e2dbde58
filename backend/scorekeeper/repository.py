"""
Доступ к данным: игроки и игры одного владельца.
Каждая функция работает в переданной сессии; ошибки базы логируются и пробрасываются дальше.
"""
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .constants import PLAYER_SLOTS, STATUS_ACTIVE, STATUS_ENDED
from .models import Game, Player
from .pairing import RosterPlayer, ScheduledGame

logger = logging.getLogger(__name__)


class DuplicatePlayerError(ValueError):
    """Один и тот же игрок в двух слотах партии."""


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("DB: %s failed", what)
        raise


# Игроки

def list_players(db: Session, owner_id: str) -> list[Player]:
    stmt = (
        select(Player)
        .where(Player.owner_id == owner_id)
        .order_by(Player.points.desc(), Player.created_at, Player.id)
    )
    return list(db.scalars(stmt))


def get_player(db: Session, owner_id: str, player_id: str) -> Player | None:
    p = db.get(Player, player_id)
    if not p or p.owner_id != owner_id:
        return None
    return p


def create_player(db: Session, owner_id: str, name: str, points: int = 0) -> Player:
    name = name.strip()
    if not name:
        raise ValueError("player name must not be empty")
    p = Player(owner_id=owner_id, name=name, points=points)
    db.add(p)
    _commit(db, "create player")
    return p


def update_player(db: Session, p: Player, name: str | None = None, points: int | None = None) -> Player:
    if name is not None:
        name = name.strip()
        if not name:
            raise ValueError("player name must not be empty")
        p.name = name
    if points is not None:
        p.points = points
    _commit(db, "update player")
    return p


def add_points_to_player(db: Session, p: Player, points_to_add: int) -> Player:
    return update_player(db, p, points=(p.points or 0) + points_to_add)


def delete_player(db: Session, p: Player) -> None:
    db.delete(p)
    _commit(db, "delete player")


def delete_all_players(db: Session, owner_id: str) -> int:
    result = db.execute(delete(Player).where(Player.owner_id == owner_id))
    _commit(db, "delete all players")
    return result.rowcount or 0


def load_roster(db: Session, owner_id: str) -> list[RosterPlayer]:
    """Ростер для генерации в порядке таблицы игроков: очки по убыванию, затем порядок создания."""
    stmt = (
        select(Player.id, Player.name)
        .where(Player.owner_id == owner_id)
        .order_by(Player.points.desc(), Player.created_at, Player.id)
    )
    return [RosterPlayer(id=row.id, name=row.name) for row in db.execute(stmt)]


# Игры

def list_games(db: Session, owner_id: str) -> list[Game]:
    stmt = select(Game).where(Game.owner_id == owner_id).order_by(Game.created_at.desc(), Game.id)
    return list(db.scalars(stmt))


def get_game(db: Session, owner_id: str, game_id: str) -> Game | None:
    g = db.get(Game, game_id)
    if not g or g.owner_id != owner_id:
        return None
    return g


def _check_distinct(g: Game) -> None:
    ids = g.player_ids
    if len(ids) != len(set(ids)):
        raise DuplicatePlayerError("a player cannot take two slots in one game")


def create_game(db: Session, owner_id: str, slots: dict[str, str | None] | None = None) -> Game:
    g = Game(owner_id=owner_id, status=STATUS_ACTIVE)
    for slot, player_id in (slots or {}).items():
        if slot not in PLAYER_SLOTS:
            raise ValueError(f"unknown slot: {slot}")
        setattr(g, f"{slot}_id", player_id)
    _check_distinct(g)
    db.add(g)
    _commit(db, "create game")
    return g


def create_scheduled_game(db: Session, owner_id: str, scheduled: ScheduledGame) -> Game:
    """Сохранить одну игру из расписания как активную."""
    t1, t2 = scheduled.team1, scheduled.team2
    return create_game(db, owner_id, {
        "team1_player1": t1.player1.id,
        "team1_player2": t1.player2.id,
        "team2_player1": t2.player1.id,
        "team2_player2": t2.player2.id,
    })


def set_game_player(db: Session, g: Game, slot: str, player_id: str | None) -> Game:
    if slot not in PLAYER_SLOTS:
        raise ValueError(f"unknown slot: {slot}")
    setattr(g, f"{slot}_id", player_id)
    try:
        _check_distinct(g)
    except DuplicatePlayerError:
        db.rollback()
        raise
    _commit(db, "set game player")
    return g


def set_game_player_points(db: Session, g: Game, slot: str, points: int) -> Game:
    if slot not in PLAYER_SLOTS:
        raise ValueError(f"unknown slot: {slot}")
    setattr(g, f"{slot}_points", points)
    _commit(db, "set player points")
    return g


def save_game(db: Session, g: Game) -> Game:
    _commit(db, "save game")
    return g


def delete_game(db: Session, g: Game) -> None:
    db.delete(g)
    _commit(db, "delete game")


def delete_all_games(db: Session, owner_id: str) -> int:
    result = db.execute(delete(Game).where(Game.owner_id == owner_id))
    _commit(db, "delete all games")
    return result.rowcount or 0


def delete_empty_games(db: Session, owner_id: str) -> int:
    stmt = delete(Game).where(Game.owner_id == owner_id)
    for slot in PLAYER_SLOTS:
        stmt = stmt.where(getattr(Game, f"{slot}_id").is_(None))
    result = db.execute(stmt)
    _commit(db, "delete empty games")
    return result.rowcount or 0


# Таблица лидеров

def player_game_points(db: Session, owner_id: str) -> dict[str, int]:
    """Сумма очков каждого игрока по завершённым партиям."""
    totals: dict[str, int] = {}
    stmt = select(Game).where(Game.owner_id == owner_id, Game.status == STATUS_ENDED)
    for g in db.scalars(stmt):
        for slot in PLAYER_SLOTS:
            pid = g.slot_player_id(slot)
            if pid:
                totals[pid] = totals.get(pid, 0) + g.slot_points(slot)
    return totals


def leaderboard(db: Session, owner_id: str) -> list[dict]:
    game_points = player_game_points(db, owner_id)
    rows = []
    for p in list_players(db, owner_id):
        gp = game_points.get(p.id, 0)
        rows.append({
            "id": p.id,
            "name": p.name,
            "points": p.points,
            "game_points": gp,
            "total_points": p.points + gp,
        })
    rows.sort(key=lambda r: r["game_points"], reverse=True)
    return rows
