"""Connection to player bookkeeping and display names."""
from __future__ import annotations

import html
import logging
import uuid
from typing import List, Optional

from .errors import AlreadyIdentified, DuplicateSession, InvalidDisplayName, InvalidIdentity
from .models import Connection, PlayerContext, PlayerId
from .state import GameState

log = logging.getLogger(__name__)


def sanitize_display_name(name: object, max_length: int) -> str:
    """Trim, cap and HTML-escape a requested display name.

    Non-string input sanitizes to the empty string.
    """

    if not isinstance(name, str):
        return ""
    clean = name.strip()[:max_length]
    return html.escape(clean, quote=False)


class SessionRegistry:
    """Binds connections to player ids, at most one live connection per id."""

    def __init__(self, state: GameState) -> None:
        self.state = state

    @property
    def active_count(self) -> int:
        return len(self.state.active_connections)

    def player_for(self, connection: Connection) -> Optional[PlayerId]:
        return self.state.players.get(connection)

    def identified_connections(self) -> List[Connection]:
        return list(self.state.players)

    def identify(self, connection: Connection, player_id: Optional[PlayerId]) -> PlayerContext:
        """Identify ``connection`` as ``player_id`` and give the player a base.

        ``None`` asks the server to mint a fresh id. Nothing is registered
        unless a starting tile could be assigned.
        """

        settings = self.state.settings
        if player_id is None:
            player_id = uuid.uuid4().hex
        if not isinstance(player_id, str) or len(player_id) < settings.min_player_id_length:
            log.warning("Invalid player ID received for identification: %r", player_id)
            raise InvalidIdentity()

        current = self.player_for(connection)
        if current is not None:
            log.warning("Connection already identified as %s", current)
            raise AlreadyIdentified()

        if player_id in self.state.active_connections:
            log.warning("Player %s is already connected. Rejecting new connection.", player_id)
            raise DuplicateSession()

        start = self.state.grid.assign_starting_tile(player_id)

        log.info("Identifying connection %s as player %s", connection.id, player_id)
        self.state.players[connection] = player_id
        self.state.active_connections[player_id] = connection
        display_name = self.state.display_names.setdefault(player_id, player_id)
        return PlayerContext(player_id=player_id, display_name=display_name, start=start)

    def deregister(self, connection: Connection) -> Optional[PlayerId]:
        """Forget ``connection``. The player's tiles stay on the grid."""

        player_id = self.state.players.pop(connection, None)
        if player_id is None:
            return None
        if self.state.active_connections.get(player_id) is connection:
            del self.state.active_connections[player_id]
        log.info(
            "Player %s disconnected. Total active players: %d",
            self.state.display_names.get(player_id, player_id),
            self.active_count,
        )
        return player_id

    def set_display_name(self, player_id: PlayerId, name: object) -> str:
        new_name = sanitize_display_name(name, self.state.settings.max_display_name_length)
        if not new_name:
            log.info("Player %s tried to set an empty/invalid name.", player_id)
            raise InvalidDisplayName()
        if self.state.display_names.get(player_id) != new_name:
            self.state.display_names[player_id] = new_name
            self.state.mark_dirty()
            log.info("Player %s set display name to: %s", player_id, new_name)
        return new_name


__all__ = ["SessionRegistry", "sanitize_display_name"]
