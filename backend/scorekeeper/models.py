"""ORM-модели: игроки и игры 2v2."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .constants import PLAYER_SLOTS, STATUS_ACTIVE
from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Player(Base):
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(100))
    points: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


def _slot_fk() -> Mapped[str | None]:
    return mapped_column(String(36), ForeignKey("players.id", ondelete="SET NULL"), nullable=True)


class Game(Base):
    __tablename__ = "games"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'ended')", name="game_status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    team1_player1_id: Mapped[str | None] = _slot_fk()
    team1_player1_points: Mapped[int] = mapped_column(Integer, default=0)
    team1_player2_id: Mapped[str | None] = _slot_fk()
    team1_player2_points: Mapped[int] = mapped_column(Integer, default=0)
    team2_player1_id: Mapped[str | None] = _slot_fk()
    team2_player1_points: Mapped[int] = mapped_column(Integer, default=0)
    team2_player2_id: Mapped[str | None] = _slot_fk()
    team2_player2_points: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_ACTIVE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    timer_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    timer_paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    timer_total_paused_ms: Mapped[int] = mapped_column(BigInteger, default=0)
    switch_sides_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def slot_player_id(self, slot: str) -> str | None:
        return getattr(self, f"{slot}_id")

    def slot_points(self, slot: str) -> int:
        return getattr(self, f"{slot}_points") or 0

    @property
    def player_ids(self) -> list[str]:
        return [pid for pid in (self.slot_player_id(s) for s in PLAYER_SLOTS) if pid]

    @property
    def is_empty(self) -> bool:
        return not self.player_ids
