"""Validation and resolution of player orders against the grid."""
from __future__ import annotations

import logging
import re
from typing import Tuple

from .errors import InsufficientStrength, InvalidAmount, InvalidTarget, NoAdjacentOwnedTile
from .models import Coord, OrderOutcome, OutcomeSummary, PlayerId
from .state import GameState

log = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_amount(value: object) -> int:
    """Parse a requested soldier amount the way browsers' ``parseInt`` does.

    Integers pass through, floats are truncated and strings contribute their
    leading integer (``"12abc"`` is 12). Anything that does not yield a
    positive integer raises :class:`InvalidAmount`.
    """

    if isinstance(value, bool):
        raise InvalidAmount()
    if isinstance(value, int):
        amount = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidAmount()
        amount = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match is None:
            raise InvalidAmount()
        amount = int(match.group(1))
    else:
        raise InvalidAmount()
    if amount <= 0:
        raise InvalidAmount()
    return amount


class OrderResolver:
    """Applies one order at a time; every call runs to completion."""

    def __init__(self, state: GameState) -> None:
        self.state = state

    def apply_order(self, player_id: PlayerId, target: Tuple[int, int], requested_amount: object) -> OutcomeSummary:
        grid = self.state.grid
        target = self._coerce_target(target)
        amount = parse_amount(requested_amount)

        candidates = [
            coord
            for coord in grid.adjacent_coords(target.x, target.y)
            if grid.tile_at(*coord).owner == player_id and grid.tile_at(*coord).strength > 0
        ]
        if not candidates:
            log.info("Player %s tried action on tile (%d, %d) with no owned adjacent tiles.", player_id, target.x, target.y)
            raise NoAdjacentOwnedTile()

        # max() keeps the first maximal element, i.e. the first in row-major order.
        source = max(candidates, key=lambda coord: grid.tile_at(*coord).strength)
        source_tile = grid.tile_at(*source)
        if source_tile.strength < amount:
            log.info(
                "Player %s action failed: strongest adjacent source (%d, %d) only has %d soldiers, needed %d.",
                player_id,
                source.x,
                source.y,
                source_tile.strength,
                amount,
            )
            raise InsufficientStrength(available=source_tile.strength, requested=amount)

        log.info(
            "Player %s action processing: %d soldiers from (%d,%d) to target (%d,%d)",
            player_id,
            amount,
            source.x,
            source.y,
            target.x,
            target.y,
        )
        target_tile = grid.tile_at(*target)
        previous_owner = target_tile.owner
        source_tile.strength -= amount

        if target_tile.owner == player_id:
            target_tile.strength += amount
            outcome = OrderOutcome.REINFORCED
        else:
            result = target_tile.strength - amount
            if result < 0:
                target_tile.owner = player_id
                target_tile.strength = -result
                outcome = OrderOutcome.CAPTURED
                log.info(
                    "  Capture!: tile captured from %s by %s with %d soldiers remaining.",
                    self._name_of(previous_owner),
                    self._name_of(player_id),
                    target_tile.strength,
                )
            elif result == 0:
                target_tile.strength = 0
                outcome = OrderOutcome.STALEMATE
                log.info("  Attack stalemate: target tile now has 0 soldiers left.")
            else:
                target_tile.strength = result
                outcome = OrderOutcome.REPELLED
                log.info("  Attack repelled: target tile now has %d soldiers left.", result)

        self.state.mark_dirty()
        return OutcomeSummary(
            outcome=outcome,
            player_id=player_id,
            source=source,
            target=target,
            amount=amount,
            previous_owner=previous_owner,
            target_strength=target_tile.strength,
            source_strength=source_tile.strength,
        )

    def _coerce_target(self, target: Tuple[int, int]) -> Coord:
        try:
            x, y = target
        except (TypeError, ValueError):
            raise InvalidTarget() from None
        if isinstance(x, bool) or isinstance(y, bool) or not isinstance(x, int) or not isinstance(y, int):
            raise InvalidTarget()
        if not self.state.grid.in_bounds(x, y):
            raise InvalidTarget()
        return Coord(x, y)

    def _name_of(self, player_id: PlayerId | None) -> str:
        if player_id is None:
            return "Neutral"
        return self.state.display_names.get(player_id, player_id)


__all__ = ["OrderResolver", "parse_amount"]
