"""Тела запросов HTTP API."""
from pydantic import BaseModel, Field


class PlayerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    points: int = 0


class PlayerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    points: int | None = None


class PointsDelta(BaseModel):
    points: int


class PointsValue(BaseModel):
    points: int = Field(ge=0)


class GameCreate(BaseModel):
    team1_player1_id: str | None = None
    team1_player2_id: str | None = None
    team2_player1_id: str | None = None
    team2_player2_id: str | None = None


class SlotPlayer(BaseModel):
    player_id: str | None = None


class SwitchSides(BaseModel):
    interval: int | None = Field(default=None, gt=0)
