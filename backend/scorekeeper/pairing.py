"""
Генерация расписания 2v2 по кругу: каждая пара игроков встречается не более одного раза.
Чистые функции без I/O, состояние живёт только внутри одного вызова.
"""
import logging
from dataclasses import dataclass
from typing import Sequence

from .constants import MIN_SCHEDULE_PLAYERS

logger = logging.getLogger(__name__)

PairKey = tuple[str, str]


class InsufficientPlayersError(ValueError):
    """В ростере меньше игроков, чем нужно для одной игры 2v2."""

    def __init__(self, count: int, required: int = MIN_SCHEDULE_PLAYERS):
        self.count = count
        self.required = required
        super().__init__(f"Need at least {required} players to generate games, got {count}")


@dataclass(frozen=True)
class RosterPlayer:
    id: str
    name: str = ""


@dataclass(frozen=True)
class Pair:
    player1: RosterPlayer
    player2: RosterPlayer

    @property
    def key(self) -> PairKey:
        return pair_key(self.player1.id, self.player2.id)

    @property
    def ids(self) -> tuple[str, str]:
        return self.player1.id, self.player2.id

    def __contains__(self, player: RosterPlayer) -> bool:
        return player.id in self.ids


@dataclass(frozen=True)
class ScheduledGame:
    team1: Pair
    team2: Pair

    @property
    def player_ids(self) -> tuple[str, str, str, str]:
        return self.team1.ids + self.team2.ids

    def opponent_keys(self) -> list[PairKey]:
        return [pair_key(a, b) for a in self.team1.ids for b in self.team2.ids]


def pair_key(a: str, b: str) -> PairKey:
    """Ключ неупорядоченной пары: не зависит от порядка игроков."""
    return (a, b) if a <= b else (b, a)


def enumerate_pairs(roster: Sequence[RosterPlayer]) -> list[Pair]:
    """Все пары (i, j), i < j, в порядке ростера. Порядок важен: сборщик жадный."""
    pairs = []
    n = len(roster)
    for i in range(n):
        for j in range(i + 1, n):
            pairs.append(Pair(roster[i], roster[j]))
    return pairs


def _first_free_pair(players: Sequence[RosterPlayer], used: set[PairKey]) -> Pair | None:
    for pair in enumerate_pairs(players):
        if pair.key not in used:
            return pair
    return None


def build_schedule(roster: Sequence[RosterPlayer]) -> list[ScheduledGame]:
    """
    Жадно собрать игры из пар ростера.
    Для каждой свободной пары team1 ищется первая свободная пара team2 среди остальных.
    После игры занятыми считаются обе команды и все четыре пары соперников.
    Результат не максимален и не выравнивает число игр у игроков.
    """
    used: set[PairKey] = set()
    games: list[ScheduledGame] = []
    for team1 in enumerate_pairs(roster):
        if team1.key in used:
            continue
        remaining = [p for p in roster if p not in team1]
        if len(remaining) < 2:
            continue
        team2 = _first_free_pair(remaining, used)
        if team2 is None:
            continue
        game = ScheduledGame(team1=team1, team2=team2)
        games.append(game)
        used.add(team1.key)
        used.add(team2.key)
        used.update(game.opponent_keys())
    return games


def generate_schedule(roster: Sequence[RosterPlayer]) -> list[ScheduledGame]:
    """Проверить размер ростера и построить расписание."""
    if len(roster) < MIN_SCHEDULE_PLAYERS:
        raise InsufficientPlayersError(len(roster))
    games = build_schedule(roster)
    if not games:
        logger.warning("Schedule: no games built for roster of %d players", len(roster))
    else:
        logger.info("Schedule: %d games for %d players", len(games), len(roster))
    return games
