"""Configuration for the Factions server.

Module level constants hold the defaults; :class:`Settings` collects them
into one immutable object that is read once at startup. Every value can be
overridden with a ``FACTIONS_*`` environment variable.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

GAME_NAME = "Factions"

HOST = "0.0.0.0"
PORT = 3000

MAP_WIDTH = 15
MAP_HEIGHT = 15

NEUTRAL_STRENGTH = 5
START_STRENGTH = 20

GENERATION_INTERVAL_MS = 1000  # Passive growth cadence.
STRENGTH_PER_TICK = 1
TICK_RATE_MS = 100  # Driver cadence, independent of message arrival.

MIN_PLAYER_ID_LENGTH = 5
MAX_DISPLAY_NAME_LENGTH = 16

SHUTDOWN_TIMEOUT_S = 0.5
LOG_LEVEL = "INFO"


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(f"FACTIONS_{name}", str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(f"FACTIONS_{name}", str(default)))


@dataclass(frozen=True)
class Settings:
    """Process wide tuning, fixed for the lifetime of the server.

    Attributes
    ----------
    map_width, map_height:
        Grid dimensions in tiles.
    neutral_strength:
        Strength every tile starts with before anyone claims it.
    start_strength:
        Strength placed on a newly assigned starting tile.
    generation_interval_ms:
        Minimum wall-clock gap between two passive growth steps.
    strength_per_tick:
        Strength added to every owned tile on each growth step.
    tick_rate_ms:
        Period of the driver that runs growth and publishes updates.
    shutdown_timeout_s:
        Upper bound on how long shutdown waits for outboxes to flush.
    """

    host: str = HOST
    port: int = PORT
    map_width: int = MAP_WIDTH
    map_height: int = MAP_HEIGHT
    neutral_strength: int = NEUTRAL_STRENGTH
    start_strength: int = START_STRENGTH
    generation_interval_ms: int = GENERATION_INTERVAL_MS
    strength_per_tick: int = STRENGTH_PER_TICK
    tick_rate_ms: int = TICK_RATE_MS
    min_player_id_length: int = MIN_PLAYER_ID_LENGTH
    max_display_name_length: int = MAX_DISPLAY_NAME_LENGTH
    shutdown_timeout_s: float = SHUTDOWN_TIMEOUT_S
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            host=os.environ.get("FACTIONS_HOST", HOST),
            port=_env_int("PORT", PORT),
            map_width=_env_int("MAP_WIDTH", MAP_WIDTH),
            map_height=_env_int("MAP_HEIGHT", MAP_HEIGHT),
            neutral_strength=_env_int("NEUTRAL_STRENGTH", NEUTRAL_STRENGTH),
            start_strength=_env_int("START_STRENGTH", START_STRENGTH),
            generation_interval_ms=_env_int("GENERATION_INTERVAL_MS", GENERATION_INTERVAL_MS),
            strength_per_tick=_env_int("STRENGTH_PER_TICK", STRENGTH_PER_TICK),
            tick_rate_ms=_env_int("TICK_RATE_MS", TICK_RATE_MS),
            min_player_id_length=_env_int("MIN_PLAYER_ID_LENGTH", MIN_PLAYER_ID_LENGTH),
            max_display_name_length=_env_int("MAX_DISPLAY_NAME_LENGTH", MAX_DISPLAY_NAME_LENGTH),
            shutdown_timeout_s=_env_float("SHUTDOWN_TIMEOUT_S", SHUTDOWN_TIMEOUT_S),
            log_level=os.environ.get("FACTIONS_LOG_LEVEL", LOG_LEVEL).upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.map_width <= 0 or self.map_height <= 0:
            raise ValueError("Map dimensions must be positive")
        if self.neutral_strength < 0 or self.start_strength < 0:
            raise ValueError("Tile strengths cannot be negative")
        if self.strength_per_tick < 0:
            raise ValueError("Growth increment cannot be negative")
        if self.generation_interval_ms <= 0 or self.tick_rate_ms <= 0:
            raise ValueError("Intervals must be positive")
        if self.min_player_id_length <= 0 or self.max_display_name_length <= 0:
            raise ValueError("Identity length limits must be positive")
        if self.shutdown_timeout_s < 0:
            raise ValueError("Shutdown timeout cannot be negative")
