"""
Обработка сообщений WebSocket: hello, subscribe_game, unsubscribe_game.
Изменения партий приходят по HTTP, сюда рассылается только их состояние.
"""
import json
import logging
import uuid

from fastapi import WebSocket
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import sessionmaker
from starlette.websockets import WebSocketDisconnect

from . import repository
from .constants import DEFAULT_OWNER_ID
from .game import game_state_payload
from .ws_manager import manager

logger = logging.getLogger(__name__)


def _load_game_state(session_factory: sessionmaker, owner_id: str, game_id: str) -> dict | None:
    # Короткая сессия на одно сообщение: соединение сразу возвращается в пул
    with session_factory() as db:
        g = repository.get_game(db, owner_id, game_id)
        return game_state_payload(g) if g else None


async def handle_ws_message(session_factory: sessionmaker, raw: str, conn_id: str, owner_id: str) -> bool:
    """
    Обрабатывает одно сообщение от клиента, прошедшего hello.
    Возвращает False если соединение нужно закрыть.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("WS: invalid JSON from %s: %s", conn_id, e)
        return True
    if not isinstance(data, dict):
        return True
    t = data.get("type")
    logger.info("WS: msg from %s type=%s", conn_id, t)
    if t == "subscribe_game":
        game_id = data.get("game_id")
        state = None
        if isinstance(game_id, str) and game_id:
            state = await run_in_threadpool(_load_game_state, session_factory, owner_id, game_id)
        if state is None:
            await manager.send(conn_id, {"type": "error", "detail": "game not found", "game_id": game_id})
            return True
        manager.subscribe(conn_id, state["id"])
        await manager.send(conn_id, state)
        return True
    if t == "unsubscribe_game":
        game_id = data.get("game_id")
        if isinstance(game_id, str) and game_id:
            manager.unsubscribe(conn_id, game_id)
        return True
    if t == "ping":
        await manager.send(conn_id, {"type": "pong"})
        return True
    if t == "close":
        return False
    return True


async def ws_hello_and_loop(ws: WebSocket, session_factory: sessionmaker) -> None:
    """
    Первое сообщение: hello с owner_id. Дальше цикл приёма сообщений.
    """
    conn_id = None
    try:
        await ws.accept()
        logger.info("WS: accepted, waiting for hello")
        raw = await ws.receive_text()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = {}
        msg_type = data.get("type") if isinstance(data, dict) else None
        if msg_type != "hello":
            logger.warning("WS: expected hello, got %s, closing 4001", msg_type)
            await ws.close(code=4001)
            return
        owner_id = data.get("owner_id") or DEFAULT_OWNER_ID
        conn_id = str(uuid.uuid4())
        manager.connect(ws, conn_id)
        logger.info("WS: hello ok conn_id=%s owner_id=%s", conn_id, owner_id)
        await manager.send(conn_id, {"type": "welcome", "conn_id": conn_id})
        while True:
            msg = await ws.receive_text()
            if not await handle_ws_message(session_factory, msg, conn_id, owner_id):
                await ws.close()
                break
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s reason=%s conn_id=%s", e.code, e.reason or "", conn_id)
    except Exception as e:
        logger.exception("WS: error conn_id=%s: %s", conn_id, e)
    finally:
        if conn_id:
            manager.disconnect(conn_id)
            logger.info("WS: disconnected conn_id=%s", conn_id)
