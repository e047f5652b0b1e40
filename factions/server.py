"""ASGI application exposing the Factions game over websockets."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import pathlib
from contextlib import asynccontextmanager
from typing import Final, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.websockets import WebSocketState
import uvicorn

from . import __version__, config
from .config import Settings
from .engine import GameEngine
from .models import Connection

log = logging.getLogger(__name__)

APP_DIR: Final = pathlib.Path(__file__).resolve().parent
STATIC_DIR: Final = APP_DIR / "static"

router = APIRouter()


@router.get("/health")
async def healthcheck(request: Request) -> JSONResponse:
    """Readiness check reporting the active player count."""

    engine: GameEngine = request.app.state.engine
    return JSONResponse({"status": "ok", "players_active": engine.registry.active_count})


@router.get("/")
async def index(request: Request) -> FileResponse:
    """Serve the browser client."""

    index_path = request.app.state.static_dir / "index.html"
    if not index_path.exists():
        raise HTTPException(status_code=404, detail="Client not built")
    return FileResponse(index_path)


async def _pump_outbox(websocket: WebSocket, connection: Connection) -> None:
    """Write queued frames to ``websocket`` until the connection is closed."""

    while True:
        message = await connection.outbox.get()
        try:
            if message is None:
                return
            await websocket.send_json(message)
        except (RuntimeError, OSError, WebSocketDisconnect):
            log.info("Write to connection %s failed; dropping its outbox.", connection.id)
            connection.close()
            connection.pending()
            return
        finally:
            connection.outbox.task_done()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    engine: GameEngine = websocket.app.state.engine
    await websocket.accept()
    connection = engine.connect()
    writer = asyncio.create_task(_pump_outbox(websocket, connection))
    try:
        while not connection.closed:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            engine.handle_message(connection, frame.get("text") or frame.get("bytes"))
    except WebSocketDisconnect:
        pass
    finally:
        engine.disconnect(connection)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(writer, timeout=engine.settings.shutdown_timeout_s)
        if (
            websocket.application_state == WebSocketState.CONNECTED
            and websocket.client_state == WebSocketState.CONNECTED
        ):
            with contextlib.suppress(RuntimeError, OSError):
                await websocket.close()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[GameEngine] = None,
    static_dir: Optional[pathlib.Path] = None,
) -> FastAPI:
    """Create the FastAPI application around a single game engine.

    Static assets are mounted only when ``static_dir`` exists; without a built
    client both `/` and `/static` answer 404.
    """

    settings = settings or Settings.from_env()
    engine = engine or GameEngine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await engine.start()
        try:
            yield
        finally:
            log.info("Server shutting down...")
            await engine.shutdown(settings.shutdown_timeout_s)

    app = FastAPI(title=config.GAME_NAME, version=__version__, lifespan=lifespan)
    app.state.engine = engine
    app.state.static_dir = static_dir or STATIC_DIR
    if app.state.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(app.state.static_dir)), name="static")
    app.include_router(router)
    return app


class GameServer(uvicorn.Server):
    """uvicorn server that quiesces the game before closing connections.

    uvicorn closes open websockets before the lifespan shutdown runs, so the
    driver is stopped and every outbox flushed here, ahead of that.
    """

    def __init__(self, config: uvicorn.Config, engine: GameEngine) -> None:
        super().__init__(config)
        self.engine = engine

    async def shutdown(self, sockets=None) -> None:
        await self.engine.shutdown()
        await super().shutdown(sockets=sockets)


__all__ = ["GameServer", "create_app"]
