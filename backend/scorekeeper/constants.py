"""Константы игр 2v2."""
from typing import Literal

GameStatus = Literal["active", "ended"]
STATUS_ACTIVE: GameStatus = "active"
STATUS_ENDED: GameStatus = "ended"

# Минимум игроков для генерации расписания (две команды по двое)
MIN_SCHEDULE_PLAYERS = 4

DEFAULT_OWNER_ID = "default"

TEAMS = ("team1", "team2")
PLAYER_SLOTS = ("team1_player1", "team1_player2", "team2_player1", "team2_player2")


def team_slots(team: str) -> tuple[str, str]:
    """Слоты двух игроков команды: team1 -> (team1_player1, team1_player2)."""
    if team not in TEAMS:
        raise ValueError(f"unknown team: {team}")
    return f"{team}_player1", f"{team}_player2"
