"""The ownership/strength matrix at the heart of the game."""
from __future__ import annotations

import logging
import random
from typing import Iterator, List, Optional, Tuple

from .errors import NoNeutralTileAvailable, OutOfBounds
from .models import Coord, PlayerId, Tile

log = logging.getLogger(__name__)


class Grid:
    """Fixed ``width`` x ``height`` array of tiles, mutated in place.

    Rows are indexed by ``y`` so ``serialise()`` yields ``map[y][x]``. The
    ``dirty`` flag is raised by every mutation and cleared by whoever publishes
    the grid.
    """

    def __init__(
        self,
        width: int,
        height: int,
        neutral_strength: int,
        start_strength: int,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.start_strength = start_strength
        self.random = rng or random.Random()
        self.dirty = False
        self._rows: List[List[Tile]] = [
            [Tile(owner=None, strength=neutral_strength) for _ in range(width)]
            for _ in range(height)
        ]
        log.info("Map initialized (%dx%d).", width, height)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            raise OutOfBounds(x, y)
        return self._rows[y][x]

    def adjacent_coords(self, x: int, y: int) -> List[Coord]:
        """Return the 8-neighbourhood of ``(x, y)`` clipped at the edges.

        Coordinates come back in row-major order, which is also the tie-break
        order used when choosing an order's source tile.
        """

        coords: List[Coord] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = x + dx, y + dy
                if self.in_bounds(nx, ny):
                    coords.append(Coord(nx, ny))
        return coords

    def __iter__(self) -> Iterator[Tuple[Coord, Tile]]:
        for y, row in enumerate(self._rows):
            for x, tile in enumerate(row):
                yield Coord(x, y), tile

    def owned_by(self, player_id: PlayerId) -> List[Coord]:
        return [coord for coord, tile in self if tile.owner == player_id]

    def neutral_coords(self) -> List[Coord]:
        return [coord for coord, tile in self if tile.is_neutral]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def assign_starting_tile(self, player_id: PlayerId) -> Coord:
        """Give ``player_id`` a random neutral tile unless they already hold one.

        A player that owns any tile gets their first holding back and the grid
        is left untouched, so reconnecting never grants a second base.
        """

        existing = next((coord for coord, tile in self if tile.owner == player_id), None)
        if existing is not None:
            log.info("Player %s already has tiles.", player_id)
            return existing

        neutral = self.neutral_coords()
        if not neutral:
            log.warning("No neutral tiles for new player %s!", player_id)
            raise NoNeutralTileAvailable()

        coord = self.random.choice(neutral)
        tile = self._rows[coord.y][coord.x]
        tile.owner = player_id
        tile.strength = self.start_strength
        self.dirty = True
        log.info("Assigned new starting tile (%d, %d) to %s", coord.x, coord.y, player_id)
        return coord

    def serialise(self) -> List[List[dict]]:
        return [[tile.serialise() for tile in row] for row in self._rows]


__all__ = ["Grid"]
