"""
Менеджер WebSocket: подключения и подписки на партии, рассылка game_state.
"""
import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket, conn_id: str):
        self.ws = ws
        self.conn_id = conn_id
        self.games: set[str] = set()


class WSManager:
    def __init__(self):
        self._by_id: dict[str, Connection] = {}
        self._by_game: dict[str, set[str]] = defaultdict(set)

    def connect(self, ws: WebSocket, conn_id: str) -> Connection:
        conn = Connection(ws, conn_id)
        self._by_id[conn_id] = conn
        return conn

    def disconnect(self, conn_id: str) -> None:
        conn = self._by_id.pop(conn_id, None)
        if not conn:
            return
        for game_id in conn.games:
            subs = self._by_game.get(game_id)
            if subs is not None:
                subs.discard(conn_id)
                if not subs:
                    del self._by_game[game_id]

    def subscribe(self, conn_id: str, game_id: str) -> bool:
        conn = self._by_id.get(conn_id)
        if not conn:
            return False
        conn.games.add(game_id)
        self._by_game[game_id].add(conn_id)
        return True

    def unsubscribe(self, conn_id: str, game_id: str) -> None:
        conn = self._by_id.get(conn_id)
        if conn:
            conn.games.discard(game_id)
        subs = self._by_game.get(game_id)
        if subs is not None:
            subs.discard(conn_id)
            if not subs:
                del self._by_game[game_id]

    def subscriber_count(self, game_id: str) -> int:
        return len(self._by_game.get(game_id, ()))

    async def send(self, conn_id: str, payload: dict[str, Any]) -> bool:
        conn = self._by_id.get(conn_id)
        if not conn:
            return False
        try:
            await conn.ws.send_json(payload)
            return True
        except Exception as e:
            logger.warning("send %s: %s", conn_id, e)
            return False

    async def broadcast_game(self, game_id: str, payload: dict[str, Any]) -> None:
        dead = []
        for conn_id in list(self._by_game.get(game_id, ())):
            if not await self.send(conn_id, payload):
                dead.append(conn_id)
        for conn_id in dead:
            self.disconnect(conn_id)

    async def broadcast_game_removed(self, game_id: str) -> None:
        await self.broadcast_game(game_id, {"type": "game_removed", "game_id": game_id})
        for conn_id in list(self._by_game.get(game_id, ())):
            self.unsubscribe(conn_id, game_id)


manager = WSManager()
