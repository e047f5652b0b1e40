"""Authoritative server for the Factions territory-control game.

The package exposes the state engine that a transport integrates with. The
grid, order resolution, growth and publishing are plain synchronous objects
that can be unit tested without a running event loop or any sockets.
"""

__version__ = "0.1.0"

from .config import Settings
from .engine import GameEngine
from .grid import Grid
from .state import GameState

__all__ = [
    "GameEngine",
    "GameState",
    "Grid",
    "Settings",
    "__version__",
]
