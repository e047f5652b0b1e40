"""Wire protocol: ``{type, payload}`` JSON frames.

Inbound frames are validated into one of a closed set of message models
before they reach the engine. Outbound frames are plain dictionaries ready
for ``send_json``.
"""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic import ValidationError as SchemaError

from .errors import GameError, InvalidDisplayName, InvalidIdentity, InvalidTarget, ProtocolError
from .models import Coord, PlayerId

if TYPE_CHECKING:
    from .state import GameState


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Raised when the type tag is known but the payload does not fit.
    invalid_payload: ClassVar[Type[GameError]] = ProtocolError


class Target(BaseModel):
    x: int
    y: int

    @field_validator("x", "y", mode="before")
    @classmethod
    def _integral_number(cls, value: Any) -> int:
        # JSON numbers only; 2.0 indexes the map like 2 does.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("coordinate must be a number")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError("coordinate must be integral")
        return int(value)

    def to_coord(self) -> Coord:
        return Coord(self.x, self.y)


class IdentifyPlayerPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: Optional[StrictStr] = Field(default=None, alias="playerId")


class IdentifyPlayer(_Message):
    invalid_payload: ClassVar[Type[GameError]] = InvalidIdentity

    type: Literal["identifyPlayer"]
    payload: IdentifyPlayerPayload = Field(default_factory=IdentifyPlayerPayload)


class ExecuteActionPayload(BaseModel):
    target: Target
    # Amount parsing is part of order validation, so any JSON value is accepted here.
    soldiers: Any = None


class ExecuteAction(_Message):
    invalid_payload: ClassVar[Type[GameError]] = InvalidTarget

    type: Literal["executeAction"]
    payload: ExecuteActionPayload


class SetDisplayNamePayload(BaseModel):
    name: Any = None


class SetDisplayName(_Message):
    invalid_payload: ClassVar[Type[GameError]] = InvalidDisplayName

    type: Literal["setDisplayName"]
    payload: SetDisplayNamePayload = Field(default_factory=SetDisplayNamePayload)


InboundMessage = Union[IdentifyPlayer, ExecuteAction, SetDisplayName]

_VARIANTS: Dict[str, Type[_Message]] = {
    "identifyPlayer": IdentifyPlayer,
    "executeAction": ExecuteAction,
    "setDisplayName": SetDisplayName,
}


def parse_message(raw: Union[str, bytes]) -> Optional[InboundMessage]:
    """Decode one inbound frame.

    Returns ``None`` for well-formed frames of an unknown type, which callers
    ignore. Raises :class:`ProtocolError` for frames that are not a JSON
    object and the variant's validation error for a malformed payload.
    """

    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise ProtocolError() from None
    if not isinstance(data, dict):
        raise ProtocolError()
    message_type = data.get("type")
    variant = _VARIANTS.get(message_type) if isinstance(message_type, str) else None
    if variant is None:
        return None
    try:
        return variant.model_validate(data)  # type: ignore[return-value]
    except SchemaError:
        raise variant.invalid_payload() from None


# ----------------------------------------------------------------------
# Outbound frames
# ----------------------------------------------------------------------
def envelope(message_type: str, payload: Any) -> Dict[str, Any]:
    return {"type": message_type, "payload": payload}


def initial_state(state: "GameState", player_id: PlayerId) -> Dict[str, Any]:
    return envelope("initialState", {"playerId": player_id, **state.snapshot()})


def map_update(state: "GameState") -> Dict[str, Any]:
    return envelope("mapUpdate", state.snapshot())


def player_joined(player_id: PlayerId, display_name: str) -> Dict[str, Any]:
    return envelope("playerJoined", {"playerId": player_id, "displayName": display_name})


def player_left(player_id: PlayerId) -> Dict[str, Any]:
    return envelope("playerLeft", {"playerId": player_id})


def error(message: str) -> Dict[str, Any]:
    return envelope("error", {"message": message})


__all__ = [
    "ExecuteAction",
    "IdentifyPlayer",
    "InboundMessage",
    "SetDisplayName",
    "Target",
    "error",
    "initial_state",
    "map_update",
    "parse_message",
    "player_joined",
    "player_left",
]
