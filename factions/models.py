"""Value types shared by the Factions state engine.

The tile and snapshot shapes mirror the wire format the browser client
consumes: the map is a list of rows and each tile exposes ``owner`` and
``soldiers``.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

PlayerId = str


class Coord(NamedTuple):
    """Integer grid coordinate."""

    x: int
    y: int

    def serialise(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass(slots=True)
class Tile:
    """One grid cell. ``owner is None`` marks a neutral tile."""

    owner: Optional[PlayerId]
    strength: int

    @property
    def is_neutral(self) -> bool:
        return self.owner is None

    def serialise(self) -> Dict[str, object]:
        return {"owner": self.owner, "soldiers": self.strength}


@dataclass(slots=True, eq=False)
class Connection:
    """A transport connection and the queue of frames waiting to be written.

    The engine only ever enqueues; a writer task owned by the transport drains
    ``outbox`` onto the socket. ``None`` in the queue tells the writer to stop.
    """

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)
    closed: bool = False

    def send(self, message: Dict[str, object]) -> None:
        if self.closed:
            return
        self.outbox.put_nowait(message)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.outbox.put_nowait(None)

    def pending(self) -> List[Dict[str, object]]:
        """Pop every queued frame without waiting."""

        messages: List[Dict[str, object]] = []
        while not self.outbox.empty():
            message = self.outbox.get_nowait()
            self.outbox.task_done()
            if message is not None:
                messages.append(message)
        return messages


@dataclass(slots=True)
class PlayerContext:
    """Result of a successful identification."""

    player_id: PlayerId
    display_name: str
    start: Coord


class OrderOutcome(str, Enum):
    REINFORCED = "reinforced"
    CAPTURED = "captured"
    STALEMATE = "stalemate"
    REPELLED = "repelled"


@dataclass(slots=True)
class OutcomeSummary:
    """What a single resolved order did to the grid."""

    outcome: OrderOutcome
    player_id: PlayerId
    source: Coord
    target: Coord
    amount: int
    previous_owner: Optional[PlayerId]
    target_strength: int
    source_strength: int
