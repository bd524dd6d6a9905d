"""
Game event definitions consumed by the aggregation core.

The demo decoder (see parser.py) turns a recorded match into an ordered
sequence of these events. Players are identified by nickname; positions are
raw world coordinates (x, y) and are mapped to pixels by map_data.py.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from matchlens.constants import Team
from matchlens.errors import MalformedEventError

Position = tuple[float, float]


@dataclass(frozen=True)
class PlayerConnect:
    """A player joined the server."""

    player: str
    tick: int = 0


@dataclass(frozen=True)
class MatchStart:
    """The live match began (warm-up over, first round about to be played)."""

    tick: int = 0


@dataclass(frozen=True)
class RoundStart:
    tick: int = 0


@dataclass(frozen=True)
class RoundEnd:
    tick: int = 0


@dataclass(frozen=True)
class BombPlanted:
    player: str
    tick: int = 0


@dataclass(frozen=True)
class BombDefused:
    player: str
    tick: int = 0


@dataclass(frozen=True)
class PlayerFlashed:
    """A player was blinded by a flashbang."""

    attacker: str
    victim: str
    team_of_victim: Team | int
    team_of_attacker: Team | int
    flash_duration: float  # seconds
    tick: int = 0


@dataclass(frozen=True)
class Kill:
    """
    A player died.

    ``killer`` is None for world/suicide deaths (fall damage, bomb, etc.).
    In that case ``killer_position`` may also be None and the victim position
    is used for both sides of the kill.
    """

    killer: str | None
    victim: str
    weapon: str
    is_headshot: bool
    penetrated_objects: int
    killer_position: Position | None
    victim_position: Position
    assister: str | None = None
    tick: int = 0

    @property
    def is_wallbang(self) -> bool:
        return self.penetrated_objects > 0

    @property
    def is_suicide(self) -> bool:
        return self.killer is not None and self.killer == self.victim


Event = Union[
    PlayerConnect,
    MatchStart,
    RoundStart,
    RoundEnd,
    BombPlanted,
    BombDefused,
    PlayerFlashed,
    Kill,
]

EVENT_TYPES = (
    PlayerConnect,
    MatchStart,
    RoundStart,
    RoundEnd,
    BombPlanted,
    BombDefused,
    PlayerFlashed,
    Kill,
)


def check_position(event: Event, field_name: str, position: Position | None) -> Position:
    """Return ``position`` if it is present and finite, else raise MalformedEventError."""
    if position is None:
        raise MalformedEventError(event, field_name, "position is missing")
    x, y = position
    if not (math.isfinite(x) and math.isfinite(y)):
        raise MalformedEventError(event, field_name, f"non-finite position {position!r}")
    return position
