"""Message dispatch and the fixed-rate driver for the Factions server.

All state transitions run synchronously on the event loop: handling a frame
or running a tick never awaits, so each one completes before anything else
touches the grid. Outbound frames are only enqueued here; the transport
writes them.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import time
from typing import Callable, List, Optional, Union

from . import protocol
from .broadcast import UpdateBroadcaster
from .config import Settings
from .errors import GameError, NotIdentified
from .growth import GrowthScheduler
from .models import Connection, PlayerContext, PlayerId
from .orders import OrderResolver
from .sessions import SessionRegistry
from .state import GameState

log = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class GameEngine:
    """Owns the game state and the components operating on it."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.clock: Clock = clock or monotonic_ms
        self.state = GameState.create(self.settings, rng)
        self.registry = SessionRegistry(self.state)
        self.resolver = OrderResolver(self.state)
        self.growth = GrowthScheduler(self.state, started_at=self.clock())
        self.broadcaster = UpdateBroadcaster(self.registry)
        self.connections: List[Connection] = []
        self._tick_task: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    def connect(self) -> Connection:
        connection = Connection()
        self.connections.append(connection)
        log.info("Connection %s opened. Waiting for identification.", connection.id)
        return connection

    def disconnect(self, connection: Connection) -> Optional[PlayerId]:
        """Tear ``connection`` down immediately and announce the departure."""

        with contextlib.suppress(ValueError):
            self.connections.remove(connection)
        player_id = self.registry.deregister(connection)
        connection.close()
        if player_id is None:
            log.info("Unidentified connection %s closed.", connection.id)
            return None
        self.broadcaster.broadcast(protocol.player_left(player_id))
        return player_id

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------
    def handle_message(self, connection: Connection, raw: Union[str, bytes, None]) -> None:
        """Parse and apply one inbound frame, replying with an error on rejection."""

        try:
            message = protocol.parse_message(raw)  # type: ignore[arg-type]
            if message is None:
                log.debug("Ignoring unknown message type from connection %s", connection.id)
                return
            self._dispatch(connection, message)
        except GameError as exc:
            connection.send(protocol.error(exc.message))
            if exc.closes_connection:
                connection.close()

    def _dispatch(self, connection: Connection, message: protocol.InboundMessage) -> None:
        if isinstance(message, protocol.IdentifyPlayer):
            self.identify(connection, message.payload.player_id)
            return
        player_id = self.registry.player_for(connection)
        if player_id is None:
            log.warning("Received %s before identification on connection %s.", message.type, connection.id)
            raise NotIdentified()
        log.info("Received from %s: %s", self.state.display_names.get(player_id, player_id), message.type)
        if isinstance(message, protocol.ExecuteAction):
            self.resolver.apply_order(player_id, message.payload.target.to_coord(), message.payload.soldiers)
        elif isinstance(message, protocol.SetDisplayName):
            self.registry.set_display_name(player_id, message.payload.name)

    def identify(self, connection: Connection, player_id: Optional[PlayerId]) -> PlayerContext:
        context = self.registry.identify(connection, player_id)
        connection.send(protocol.initial_state(self.state, context.player_id))
        self.broadcaster.broadcast(protocol.player_joined(context.player_id, context.display_name))
        return context

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------
    def tick(self, now: Optional[float] = None) -> bool:
        """Run growth, then publish if anything changed. Returns True on publish."""

        self.growth.tick(self.clock() if now is None else now)
        return self.broadcaster.publish_if_dirty()

    @property
    def running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    async def start(self) -> None:
        if self._tick_task is None:
            self.growth.reset(self.clock())
            self._tick_task = asyncio.create_task(self._run_loop())
            log.info("Starting main game loop (tick rate: %dms)", self.settings.tick_rate_ms)

    async def stop(self) -> None:
        if self._tick_task:
            self._tick_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._tick_task
            self._tick_task = None
            log.info("Stopped main game loop.")

    async def _run_loop(self) -> None:
        interval = self.settings.tick_rate_ms / 1000.0
        next_tick = time.perf_counter()
        while True:
            self.tick()
            next_tick += interval
            delay = next_tick - time.perf_counter()
            if delay < 0:
                # Fell behind; skip the missed ticks instead of bursting.
                next_tick = time.perf_counter()
                delay = 0.0
            await asyncio.sleep(delay)

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the driver, then give every outbox up to ``timeout`` to flush."""

        timeout = self.settings.shutdown_timeout_s if timeout is None else timeout
        await self.stop()
        connections = list(self.connections)
        for connection in connections:
            connection.close()
        try:
            await asyncio.wait_for(
                asyncio.gather(*(connection.outbox.join() for connection in connections)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            log.error("Graceful shutdown timed out with %d connections pending.", len(connections))


__all__ = ["GameEngine", "monotonic_ms"]
