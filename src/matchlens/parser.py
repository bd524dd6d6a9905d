"""
Demo Parser Wrapper for CS2 Replay Files

Wraps demoparser2 to turn a .dem file into the ordered event stream the
aggregation core consumes. The core never sees the binary format.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
from demoparser2 import DemoParser as Demoparser2

from matchlens.errors import DecodeError
from matchlens.events import (
    BombDefused,
    BombPlanted,
    Event,
    Kill,
    MatchStart,
    PlayerConnect,
    PlayerFlashed,
    RoundEnd,
    RoundStart,
)
from matchlens.utils import timed

logger = logging.getLogger(__name__)

# Game events requested from demoparser2, in same-tick processing order:
# a round-winning kill or defuse belongs to the round that it ends
EVENT_NAMES = [
    "player_connect",
    "begin_new_match",
    "player_death",
    "player_blind",
    "bomb_planted",
    "bomb_defused",
    "round_end",
    "round_start",
]

# Player props attached to every event (prefixed with attacker_/user_/...)
PLAYER_PROPS = ["X", "Y", "team_num"]

_EVENT_ORDER = {name: i for i, name in enumerate(EVENT_NAMES)}


@dataclass
class DecodedDemo:
    """Parsed demo: map name plus chronologically ordered events."""

    file_path: Path
    map_name: str
    events: list[Event] = field(default_factory=list)

    @property
    def kill_count(self) -> int:
        return sum(1 for e in self.events if isinstance(e, Kill))


def _clean(value: Any) -> Any:
    """Map pandas missing values (NaN/None/NaT) to None."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, dict)):
        return value
    return None if pd.isna(value) else value


def _name(record: dict, key: str) -> str | None:
    value = _clean(record.get(key))
    if value is None:
        return None
    value = str(value)
    return value or None


def _int(record: dict, key: str, default: int = 0) -> int:
    value = _clean(record.get(key))
    return default if value is None else int(value)


def _float(record: dict, key: str, default: float = 0.0) -> float:
    value = _clean(record.get(key))
    return default if value is None else float(value)


def _position(record: dict, prefix: str) -> tuple[float, float] | None:
    x = _clean(record.get(f"{prefix}_X"))
    y = _clean(record.get(f"{prefix}_Y"))
    if x is None or y is None:
        return None
    return (float(x), float(y))


def _records(frame: Any) -> list[dict]:
    if isinstance(frame, pd.DataFrame):
        return frame.to_dict("records")
    if isinstance(frame, list):
        return [r for r in frame if isinstance(r, dict)]
    return []


def _normalize_events(raw: Any) -> dict[str, list[dict]]:
    """demoparser2 returns a list of (name, DataFrame) tuples; older builds a dict."""
    if isinstance(raw, dict):
        items = raw.items()
    else:
        items = raw or []
    return {name: _records(frame) for name, frame in items}


def event_from_record(name: str, record: dict) -> Event | None:
    """Convert one demoparser2 event record into an Event (None if irrelevant)."""
    tick = _int(record, "tick")

    if name == "player_connect":
        player = _name(record, "name") or _name(record, "user_name")
        return PlayerConnect(player=player, tick=tick) if player else None

    if name == "begin_new_match":
        return MatchStart(tick=tick)

    if name == "round_start":
        return RoundStart(tick=tick)

    if name == "round_end":
        return RoundEnd(tick=tick)

    if name in ("bomb_planted", "bomb_defused"):
        player = _name(record, "user_name")
        if not player:
            return None
        cls = BombPlanted if name == "bomb_planted" else BombDefused
        return cls(player=player, tick=tick)

    if name == "player_blind":
        attacker = _name(record, "attacker_name")
        victim = _name(record, "user_name")
        if attacker is None or victim is None:
            return None
        return PlayerFlashed(
            attacker=attacker,
            victim=victim,
            team_of_victim=_int(record, "user_team_num"),
            team_of_attacker=_int(record, "attacker_team_num"),
            flash_duration=_float(record, "blind_duration"),
            tick=tick,
        )

    if name == "player_death":
        victim = _name(record, "user_name")
        victim_position = _position(record, "user")
        if victim is None or victim_position is None:
            raise DecodeError(f"player_death at tick {tick} has no victim/position")
        return Kill(
            killer=_name(record, "attacker_name"),
            victim=victim,
            weapon=_name(record, "weapon") or "unknown",
            is_headshot=bool(_clean(record.get("headshot")) or False),
            penetrated_objects=_int(record, "penetrated"),
            killer_position=_position(record, "attacker"),
            victim_position=victim_position,
            assister=_name(record, "assister_name"),
            tick=tick,
        )

    return None


class DemoDecoder:
    """
    Decoder for CS2 demo files.

    Usage:
        demo = DemoDecoder("match.dem").decode()
        for event in demo.events:
            ...
    """

    def __init__(self, demo_path: str | Path):
        self.demo_path = Path(demo_path)
        if not self.demo_path.exists():
            raise DecodeError(f"Demo file not found: {demo_path}")
        if self.demo_path.suffix.lower() != ".dem":
            raise DecodeError(f"Expected .dem file, got: {self.demo_path.suffix}")

    def decode(self) -> DecodedDemo:
        logger.info(f"Parsing demo: {self.demo_path}")
        try:
            parser = Demoparser2(str(self.demo_path))
            header = parser.parse_header()
            raw = parser.parse_events(EVENT_NAMES, player=PLAYER_PROPS)
        except Exception as e:
            raise DecodeError(f"Failed to parse {self.demo_path.name}: {e}") from e

        if isinstance(header, dict):
            map_name = header.get("map_name")
        else:
            map_name = getattr(header, "map_name", None)
        if not map_name:
            raise DecodeError(f"Demo header of {self.demo_path.name} has no map name")

        keyed: list[tuple[int, int, int, Event]] = []
        for name, records in _normalize_events(raw).items():
            for idx, record in enumerate(records):
                event = event_from_record(name, record)
                if event is not None:
                    keyed.append((event.tick, _EVENT_ORDER.get(name, len(EVENT_NAMES)), idx, event))

        keyed.sort(key=lambda item: item[:3])
        demo = DecodedDemo(
            file_path=self.demo_path,
            map_name=str(map_name),
            events=[item[3] for item in keyed],
        )

        logger.info(f"MAP: {demo.map_name}, {len(demo.events)} events, {demo.kill_count} kills")
        return demo


@timed
def decode_demo(demo_path: str | Path) -> DecodedDemo:
    """Convenience function to decode a demo file."""
    return DemoDecoder(demo_path).decode()
