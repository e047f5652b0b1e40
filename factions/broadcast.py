"""Publishing state to identified sessions."""
from __future__ import annotations

from typing import Dict

from . import protocol
from .sessions import SessionRegistry


class UpdateBroadcaster:
    """Sends full-state snapshots, never deltas, to every identified session."""

    def __init__(self, registry: SessionRegistry) -> None:
        self.registry = registry
        self.state = registry.state

    def broadcast(self, message: Dict[str, object]) -> int:
        connections = self.registry.identified_connections()
        for connection in connections:
            connection.send(message)
        return len(connections)

    def publish_if_dirty(self) -> bool:
        """Send a ``mapUpdate`` if the grid changed since the last publish.

        The flag is cleared even when nobody is identified; a player who joins
        later receives the full state in ``initialState`` anyway.
        """

        if not self.state.dirty:
            return False
        self.state.clear_dirty()
        if not self.registry.active_count:
            return False
        self.broadcast(protocol.map_update(self.state))
        return True
