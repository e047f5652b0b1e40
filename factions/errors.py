"""Exceptions raised by the state engine.

Every error carries the message that is sent back to the offending client.
Errors flagged with ``closes_connection`` end the connection after the reply.
"""
from __future__ import annotations


class GameError(RuntimeError):
    """Base class for all rejections produced by the engine."""

    default_message = "Request rejected."
    closes_connection = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ----------------------------------------------------------------------
# Validation: malformed or out-of-range payloads. Nothing is mutated.
# ----------------------------------------------------------------------
class ValidationError(GameError):
    default_message = "Invalid request."


class OutOfBounds(ValidationError):
    """Raised when coordinates fall outside the grid."""

    def __init__(self, x: int, y: int) -> None:
        super().__init__(f"Coordinates ({x}, {y}) are outside the map.")
        self.x = x
        self.y = y


class OrderError(ValidationError):
    """Base class for rejected ``executeAction`` orders."""


class InvalidTarget(OrderError):
    default_message = "Invalid action data."


class InvalidAmount(OrderError):
    default_message = "Soldier amount must be a positive number."


class NoAdjacentOwnedTile(OrderError):
    default_message = "Must target a tile adjacent to one you own."


class InsufficientStrength(OrderError):
    def __init__(self, available: int, requested: int) -> None:
        super().__init__(f"Not enough soldiers on strongest adjacent tile ({available} available).")
        self.available = available
        self.requested = requested


class InvalidIdentity(ValidationError):
    default_message = "Invalid identification attempt."


class InvalidDisplayName(ValidationError):
    default_message = "Display name cannot be empty or invalid."


# ----------------------------------------------------------------------
# Conflicts with the current session state.
# ----------------------------------------------------------------------
class ConflictError(GameError):
    default_message = "Request conflicts with the current session."


class AlreadyIdentified(ConflictError):
    default_message = "Connection is already identified."


class NotIdentified(ConflictError):
    default_message = "Identify before sending game messages."


class DuplicateSession(ConflictError):
    default_message = "You are already connected in another window/tab."
    closes_connection = True


# ----------------------------------------------------------------------
# Exhausted resources: fatal for the connection attempt only.
# ----------------------------------------------------------------------
class ResourceExhaustion(GameError):
    closes_connection = True


class NoNeutralTileAvailable(ResourceExhaustion):
    default_message = "Could not find a starting position on the map."


class ProtocolError(GameError):
    """Raised when an inbound frame cannot be parsed at all."""

    default_message = "Invalid message format received."


__all__ = [
    "AlreadyIdentified",
    "ConflictError",
    "DuplicateSession",
    "GameError",
    "InsufficientStrength",
    "InvalidAmount",
    "InvalidDisplayName",
    "InvalidIdentity",
    "InvalidTarget",
    "NoAdjacentOwnedTile",
    "NoNeutralTileAvailable",
    "NotIdentified",
    "OrderError",
    "OutOfBounds",
    "ProtocolError",
    "ResourceExhaustion",
    "ValidationError",
]
