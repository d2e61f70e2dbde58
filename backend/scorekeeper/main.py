"""
Scorekeeper API и WebSocket.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from .config import get_config
from .db import get_session_factory, init_db
from .routes import router
from .ws_handlers import ws_hello_and_loop

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

config = get_config()
if config.debug:
    logging.getLogger().setLevel(logging.DEBUG)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    logger.info("DB: tables ready")
    yield


app = FastAPI(title="Scorekeeper API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket, session_factory: sessionmaker = Depends(get_session_factory)):
    logger.info("WS: connection attempt from %s", ws.client)
    await ws_hello_and_loop(ws, session_factory)
