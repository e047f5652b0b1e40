from __future__ import annotations

import random

import pytest

from factions.config import Settings
from factions.engine import GameEngine
from factions.state import GameState


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def state(settings: Settings) -> GameState:
    return GameState.create(settings, rng=random.Random(7))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(1_000.0)


@pytest.fixture()
def engine(settings: Settings, clock: FakeClock) -> GameEngine:
    return GameEngine(settings, rng=random.Random(7), clock=clock)


def claim(state: GameState, x: int, y: int, owner: str | None, strength: int) -> None:
    """Put a tile into a known state."""

    tile = state.grid.tile_at(x, y)
    tile.owner = owner
    tile.strength = strength
