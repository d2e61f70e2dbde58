"""
HTTP API: игроки, игры, счёт, таймер, смена сторон и генерация игр по кругу.
Данные разделены по владельцу из заголовка X-Owner-Id.
"""
import logging

import anyio
from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from . import game as game_logic
from . import repository
from .constants import DEFAULT_OWNER_ID, PLAYER_SLOTS, STATUS_ENDED, TEAMS
from .db import get_db
from .models import Game, Player
from .pairing import InsufficientPlayersError
from .scheduling import generate_round_robin_games
from .schemas import (
    GameCreate,
    PlayerCreate,
    PlayerUpdate,
    PointsDelta,
    PointsValue,
    SlotPlayer,
    SwitchSides,
)
from .ws_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_owner_id(x_owner_id: str | None = Header(default=None)) -> str:
    return (x_owner_id or "").strip() or DEFAULT_OWNER_ID


def player_payload(p: Player) -> dict:
    return {"id": p.id, "name": p.name, "points": p.points}


def game_payload(db: Session, g: Game) -> dict:
    payload = game_logic.game_state_payload(g)
    payload.pop("type")
    for slot in PLAYER_SLOTS:
        pid = g.slot_player_id(slot)
        p = db.get(Player, pid) if pid else None
        payload[slot] = player_payload(p) if p else None
    return payload


def _player_or_404(db: Session, owner_id: str, player_id: str) -> Player:
    p = repository.get_player(db, owner_id, player_id)
    if not p:
        raise HTTPException(status_code=404, detail="Player not found")
    return p


def _game_or_404(db: Session, owner_id: str, game_id: str) -> Game:
    g = repository.get_game(db, owner_id, game_id)
    if not g:
        raise HTTPException(status_code=404, detail="Game not found")
    return g


def _check_slot(slot: str) -> None:
    if slot not in PLAYER_SLOTS:
        raise HTTPException(status_code=404, detail=f"Unknown slot {slot}")


def _check_team(team: str) -> None:
    if team not in TEAMS:
        raise HTTPException(status_code=404, detail=f"Unknown team {team}")


def _check_timer_action(action: str) -> None:
    if action not in game_logic.TIMER_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown timer action {action}")


def _publish(db: Session, g: Game) -> dict:
    # обработчики работают в threadpool, рассылка выполняется в event loop
    payload = game_payload(db, g)
    anyio.from_thread.run(manager.broadcast_game, g.id, {"type": "game_state", **payload})
    return payload


def _publish_removed(game_id: str) -> None:
    anyio.from_thread.run(manager.broadcast_game_removed, game_id)


# Игроки

@router.get("/players")
def list_players(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return {"players": [player_payload(p) for p in repository.list_players(db, owner_id)]}


@router.post("/players", status_code=status.HTTP_201_CREATED)
def create_player(body: PlayerCreate, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    try:
        p = repository.create_player(db, owner_id, body.name, body.points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return player_payload(p)


@router.delete("/players")
def delete_all_players(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    """Игры без игроков не имеют смысла: удаляются вместе с игроками."""
    game_ids = [g.id for g in repository.list_games(db, owner_id)]
    games = repository.delete_all_games(db, owner_id)
    players = repository.delete_all_players(db, owner_id)
    for game_id in game_ids:
        _publish_removed(game_id)
    return {"deleted_players": players, "deleted_games": games}


@router.get("/players/{player_id}")
def get_player(player_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return player_payload(_player_or_404(db, owner_id, player_id))


@router.patch("/players/{player_id}")
def update_player(
    player_id: str,
    body: PlayerUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    p = _player_or_404(db, owner_id, player_id)
    try:
        repository.update_player(db, p, name=body.name, points=body.points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return player_payload(p)


@router.post("/players/{player_id}/points")
def add_player_points(
    player_id: str,
    body: PointsDelta,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    p = _player_or_404(db, owner_id, player_id)
    return player_payload(repository.add_points_to_player(db, p, body.points))


@router.delete("/players/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_player(player_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    repository.delete_player(db, _player_or_404(db, owner_id, player_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/leaderboard")
def leaderboard(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return {"players": repository.leaderboard(db, owner_id)}


# Игры

@router.get("/games")
def list_games(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return {"games": [game_payload(db, g) for g in repository.list_games(db, owner_id)]}


@router.post("/games", status_code=status.HTTP_201_CREATED)
def create_game(body: GameCreate, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    slots = {}
    for slot in PLAYER_SLOTS:
        pid = getattr(body, f"{slot}_id")
        if pid is not None:
            _player_or_404(db, owner_id, pid)
        slots[slot] = pid
    try:
        g = repository.create_game(db, owner_id, slots)
    except repository.DuplicatePlayerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return game_payload(db, g)


@router.post("/games/round-robin")
def generate_games(
    response: Response,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    try:
        result = generate_round_robin_games(db, owner_id)
    except InsufficientPlayersError as e:
        raise HTTPException(
            status_code=400,
            detail=f"At least {e.required} players are needed to generate games ({e.count} available)",
        )
    response.status_code = status.HTTP_207_MULTI_STATUS if result.partial else status.HTTP_201_CREATED
    return result.payload()


@router.delete("/games")
def delete_all_games(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    game_ids = [g.id for g in repository.list_games(db, owner_id)]
    deleted = repository.delete_all_games(db, owner_id)
    for game_id in game_ids:
        _publish_removed(game_id)
    return {"deleted_games": deleted}


@router.delete("/games/empty")
def delete_empty_games(db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return {"deleted_games": repository.delete_empty_games(db, owner_id)}


@router.get("/games/{game_id}")
def get_game(game_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    return game_payload(db, _game_or_404(db, owner_id, game_id))


@router.delete("/games/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(game_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    repository.delete_game(db, _game_or_404(db, owner_id, game_id))
    _publish_removed(game_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/games/{game_id}/slots/{slot}")
def set_slot_player(
    game_id: str,
    slot: str,
    body: SlotPlayer,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    _check_slot(slot)
    g = _game_or_404(db, owner_id, game_id)
    if body.player_id is not None:
        _player_or_404(db, owner_id, body.player_id)
    try:
        repository.set_game_player(db, g, slot, body.player_id)
    except repository.DuplicatePlayerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _publish(db, g)


@router.put("/games/{game_id}/slots/{slot}/points")
def set_slot_points(
    game_id: str,
    slot: str,
    body: PointsValue,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    _check_slot(slot)
    g = _game_or_404(db, owner_id, game_id)
    repository.set_game_player_points(db, g, slot, body.points)
    return _publish(db, g)


@router.post("/games/{game_id}/teams/{team}/points")
def add_team_points(
    game_id: str,
    team: str,
    body: PointsDelta,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    _check_team(team)
    g = _game_or_404(db, owner_id, game_id)
    game_logic.add_team_points(g, team, body.points)
    repository.save_game(db, g)
    return _publish(db, g)


@router.put("/games/{game_id}/teams/{team}/points")
def set_team_points(
    game_id: str,
    team: str,
    body: PointsValue,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    _check_team(team)
    g = _game_or_404(db, owner_id, game_id)
    game_logic.set_team_points(g, team, body.points)
    repository.save_game(db, g)
    return _publish(db, g)


@router.post("/games/{game_id}/end")
def end_game(game_id: str, db: Session = Depends(get_db), owner_id: str = Depends(get_owner_id)):
    g = _game_or_404(db, owner_id, game_id)
    if g.status == STATUS_ENDED:
        raise HTTPException(status_code=409, detail="Game already ended")
    game_logic.end_game(g)
    repository.save_game(db, g)
    logger.info("Game %s ended", g.id)
    return _publish(db, g)


@router.post("/games/{game_id}/timer/{action}")
def timer_action(
    game_id: str,
    action: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    _check_timer_action(action)
    g = _game_or_404(db, owner_id, game_id)
    try:
        game_logic.apply_timer_action(g, action)
    except game_logic.TimerStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    repository.save_game(db, g)
    return _publish(db, g)


@router.put("/games/{game_id}/switch-sides")
def set_switch_sides(
    game_id: str,
    body: SwitchSides,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_owner_id),
):
    g = _game_or_404(db, owner_id, game_id)
    game_logic.set_switch_sides_interval(g, body.interval)
    repository.save_game(db, g)
    return _publish(db, g)
