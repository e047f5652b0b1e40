"""Passive strength accrual on owned tiles."""
from __future__ import annotations

from .state import GameState


class GrowthScheduler:
    """Adds ``strength_per_tick`` to every owned tile once per interval.

    ``now`` values are milliseconds from any monotonic clock; the scheduler
    only compares them against each other.
    """

    def __init__(self, state: GameState, started_at: float = 0.0) -> None:
        self.state = state
        self.interval_ms = state.settings.generation_interval_ms
        self.increment = state.settings.strength_per_tick
        self.last_run = started_at

    def reset(self, now: float) -> None:
        self.last_run = now

    def tick(self, now: float) -> bool:
        if now - self.last_run < self.interval_ms:
            return False
        grown = False
        for _, tile in self.state.grid:
            if tile.owner is not None:
                tile.strength += self.increment
                grown = True
        if grown and self.increment:
            self.state.mark_dirty()
        self.last_run = now
        return True
