"""The single aggregate holding all mutable game state."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import Settings
from .grid import Grid
from .models import Connection, PlayerId


@dataclass
class GameState:
    """Grid, session maps and display names for one running server.

    Components receive the same instance by reference; nothing else holds
    game state.
    """

    settings: Settings
    grid: Grid
    players: Dict[Connection, PlayerId] = field(default_factory=dict)
    active_connections: Dict[PlayerId, Connection] = field(default_factory=dict)
    display_names: Dict[PlayerId, str] = field(default_factory=dict)

    @classmethod
    def create(cls, settings: Optional[Settings] = None, rng: Optional[random.Random] = None) -> "GameState":
        settings = settings or Settings()
        grid = Grid(
            settings.map_width,
            settings.map_height,
            neutral_strength=settings.neutral_strength,
            start_strength=settings.start_strength,
            rng=rng,
        )
        return cls(settings=settings, grid=grid)

    @property
    def dirty(self) -> bool:
        return self.grid.dirty

    def mark_dirty(self) -> None:
        self.grid.dirty = True

    def clear_dirty(self) -> None:
        self.grid.dirty = False

    def snapshot(self) -> Dict[str, object]:
        return {"map": self.grid.serialise(), "displayNames": dict(self.display_names)}
