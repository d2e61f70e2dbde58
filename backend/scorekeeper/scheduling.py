"""
Генерация и сохранение игр по кругу для владельца.
Каждая игра пишется отдельно: упавшая запись не откатывает уже созданные.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import repository
from .pairing import generate_schedule

logger = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    attempted: int
    created: list[str] = field(default_factory=list)  # id сохранённых игр

    @property
    def failed(self) -> int:
        return self.attempted - len(self.created)

    @property
    def partial(self) -> bool:
        return self.failed > 0

    def payload(self) -> dict:
        return {
            "attempted": self.attempted,
            "created": len(self.created),
            "failed": self.failed,
            "game_ids": list(self.created),
        }


def generate_round_robin_games(db: Session, owner_id: str) -> ScheduleResult:
    """
    Загрузить ростер, построить расписание и сохранить каждую игру.
    InsufficientPlayersError пробрасывается до любых записей.
    """
    roster = repository.load_roster(db, owner_id)
    games = generate_schedule(roster)
    result = ScheduleResult(attempted=len(games))
    for scheduled in games:
        try:
            g = repository.create_scheduled_game(db, owner_id, scheduled)
        except SQLAlchemyError as e:
            logger.warning("Schedule: failed to save game %s: %s", scheduled.player_ids, e)
            continue
        result.created.append(g.id)
    if result.partial:
        logger.warning(
            "Schedule: saved %d of %d games for owner %s",
            len(result.created), result.attempted, owner_id,
        )
    else:
        logger.info("Schedule: saved %d games for owner %s", len(result.created), owner_id)
    return result
