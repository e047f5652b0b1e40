"""End-to-end checks through the FastAPI websocket endpoint."""
from __future__ import annotations

import asyncio
import random

import pytest
import uvicorn
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from factions.config import Settings
from factions.engine import GameEngine
from factions.server import GameServer, create_app


@pytest.fixture()
def client():
    settings = Settings(tick_rate_ms=20, generation_interval_ms=200)
    app = create_app(settings, GameEngine(settings, rng=random.Random(11)))
    with TestClient(app) as test_client:
        yield test_client


def receive_until(websocket, message_type: str, limit: int = 50) -> dict:
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"no {message_type} message received")


def test_healthcheck_counts_active_players(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok", "players_active": 0}
    with client.websocket_connect("/ws") as websocket:
        websocket.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-one"}})
        receive_until(websocket, "initialState")
        assert client.get("/health").json()["players_active"] == 1


def test_identify_and_play_over_websocket(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-one"}})
        initial = receive_until(websocket, "initialState")
        assert initial["payload"]["playerId"] == "player-one"
        assert initial["payload"]["displayNames"] == {"player-one": "player-one"}
        game_map = initial["payload"]["map"]
        owned = [
            (x, y)
            for y, row in enumerate(game_map)
            for x, tile in enumerate(row)
            if tile["owner"] == "player-one"
        ]
        assert len(owned) == 1

        websocket.send_json({"type": "executeAction", "payload": {"target": {"x": 99, "y": 0}, "soldiers": 3}})
        error = receive_until(websocket, "error")
        assert error["payload"]["message"] == "Invalid action data."

        websocket.send_json({"type": "setDisplayName", "payload": {"name": "Ada"}})
        for _ in range(50):
            update = receive_until(websocket, "mapUpdate")
            if update["payload"]["displayNames"] == {"player-one": "Ada"}:
                break
        else:
            raise AssertionError("display name never published")


def test_second_tab_for_same_player_is_disconnected(client: TestClient) -> None:
    with client.websocket_connect("/ws") as first:
        first.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-one"}})
        receive_until(first, "initialState")
        with client.websocket_connect("/ws") as second:
            second.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-one"}})
            reply = second.receive_json()
            assert reply == {"type": "error", "payload": {"message": "You are already connected in another window/tab."}}
            with pytest.raises(WebSocketDisconnect):
                second.receive_json()


def test_departure_is_broadcast(client: TestClient) -> None:
    with client.websocket_connect("/ws") as stayer:
        stayer.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-one"}})
        receive_until(stayer, "initialState")
        with client.websocket_connect("/ws") as leaver:
            leaver.send_json({"type": "identifyPlayer", "payload": {"playerId": "player-two"}})
            receive_until(leaver, "initialState")
            joined = receive_until(stayer, "playerJoined")
            if joined["payload"]["playerId"] == "player-one":
                joined = receive_until(stayer, "playerJoined")
            assert joined["payload"] == {"playerId": "player-two", "displayName": "player-two"}
        left = receive_until(stayer, "playerLeft")
        assert left["payload"] == {"playerId": "player-two"}


def test_index_is_missing_until_client_is_built(client: TestClient) -> None:
    assert client.get("/").status_code == 404


def test_static_assets_are_missing_until_client_is_built(client: TestClient) -> None:
    assert client.get("/static/app.js").status_code == 404


def test_built_client_is_served(tmp_path) -> None:
    (tmp_path / "index.html").write_text("<canvas></canvas>")
    (tmp_path / "app.js").write_text("connect();")
    settings = Settings()
    app = create_app(settings, GameEngine(settings), static_dir=tmp_path)
    with TestClient(app) as test_client:
        assert test_client.get("/").text == "<canvas></canvas>"
        assert test_client.get("/static/app.js").text == "connect();"
        assert test_client.get("/static/missing.js").status_code == 404


def test_importing_the_server_builds_no_engine() -> None:
    import factions.server

    assert not hasattr(factions.server, "app")


def test_game_is_quiesced_before_uvicorn_closes_connections(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = Settings(tick_rate_ms=5, shutdown_timeout_s=0.05)
    engine = GameEngine(settings)
    server = GameServer(uvicorn.Config(create_app(settings, engine)), engine)
    seen = {}

    async def close_connections(self, sockets=None) -> None:
        seen["driver_running"] = engine.running
        seen["outboxes_closed"] = [connection.closed for connection in engine.connections]

    monkeypatch.setattr(uvicorn.Server, "shutdown", close_connections)

    async def scenario() -> None:
        await engine.start()
        engine.connect()
        await server.shutdown()

    asyncio.run(scenario())
    assert seen == {"driver_running": False, "outboxes_closed": [True]}
