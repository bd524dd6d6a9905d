"""
Per-player match statistics.

PlayerRecord objects are created and mutated only by the StatAggregator.
MatchAggregateResult is the emitted artifact and converts to and from the
JSON payload defined in schemas.py.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from matchlens.schemas import (
    DeathRecordModel,
    KillRecordModel,
    PlayerDataModel,
    PositionModel,
    StatsPayloadModel,
)

logger = logging.getLogger(__name__)

PixelPoint = tuple[float, float]


def _position_model(point: PixelPoint) -> PositionModel:
    return PositionModel(x=point[0], y=point[1])


def _point(model: PositionModel) -> PixelPoint:
    return (model.x, model.y)


@dataclass
class KillEvent:
    """A kill scored by the record's owner, positions in overview pixels."""

    victim: str
    killer_position: PixelPoint
    victim_position: PixelPoint
    weapon: str
    was_headshot: bool = False
    was_wallbang: bool = False
    was_entry: bool = False


@dataclass
class DeathEvent:
    """A death of the record's owner. ``killer`` is None for world deaths."""

    killer: str | None
    killer_position: PixelPoint
    victim_position: PixelPoint
    weapon: str
    was_headshot: bool = False
    was_wallbang: bool = False
    was_entry: bool = False


@dataclass
class PlayerRecord:
    """Statistics of one player for one match."""

    nickname: str
    bomb_plants: int = 0
    defusals: int = 0
    players_flashed: int = 0
    assists: int = 0
    kills: list[KillEvent] = field(default_factory=list)
    deaths: list[DeathEvent] = field(default_factory=list)

    @property
    def kill_count(self) -> int:
        return len(self.kills)

    @property
    def death_count(self) -> int:
        return len(self.deaths)

    @property
    def headshots(self) -> int:
        return sum(1 for k in self.kills if k.was_headshot)

    @property
    def entry_kills(self) -> int:
        return sum(1 for k in self.kills if k.was_entry)

    @property
    def headshot_pct(self) -> float:
        return (self.headshots / self.kill_count * 100) if self.kill_count > 0 else 0.0

    def weapon_counts(self) -> dict[str, int]:
        """Kills per weapon, most used first."""
        return dict(Counter(k.weapon for k in self.kills).most_common())

    def to_model(self) -> PlayerDataModel:
        return PlayerDataModel(
            nickname=self.nickname,
            plants=self.bomb_plants,
            defusals=self.defusals,
            flashed=self.players_flashed,
            assists=self.assists,
            kills=[
                KillRecordModel(
                    victim=k.victim,
                    killer_position=_position_model(k.killer_position),
                    victim_position=_position_model(k.victim_position),
                    wallbang=k.was_wallbang,
                    headshot=k.was_headshot,
                    entry=k.was_entry,
                    weapon=k.weapon,
                )
                for k in self.kills
            ],
            deaths=[
                DeathRecordModel(
                    killer=d.killer,
                    killer_position=_position_model(d.killer_position),
                    victim_position=_position_model(d.victim_position),
                    wallbang=d.was_wallbang,
                    headshot=d.was_headshot,
                    entry=d.was_entry,
                    weapon=d.weapon,
                )
                for d in self.deaths
            ],
        )

    @classmethod
    def from_model(cls, model: PlayerDataModel) -> PlayerRecord:
        return cls(
            nickname=model.nickname,
            bomb_plants=model.plants,
            defusals=model.defusals,
            players_flashed=model.flashed,
            assists=model.assists,
            kills=[
                KillEvent(
                    victim=k.victim,
                    killer_position=_point(k.killer_position),
                    victim_position=_point(k.victim_position),
                    weapon=k.weapon,
                    was_headshot=k.headshot,
                    was_wallbang=k.wallbang,
                    was_entry=k.entry,
                )
                for k in model.kills
            ],
            deaths=[
                DeathEvent(
                    killer=d.killer,
                    killer_position=_point(d.killer_position),
                    victim_position=_point(d.victim_position),
                    weapon=d.weapon,
                    was_headshot=d.headshot,
                    was_wallbang=d.wallbang,
                    was_entry=d.entry,
                )
                for d in model.deaths
            ],
        )


@dataclass
class MatchAggregateResult:
    """Complete statistics for one match, players in roster order."""

    match_id: str
    players: list[PlayerRecord] = field(default_factory=list)

    def get_player(self, nickname: str) -> PlayerRecord | None:
        for player in self.players:
            if player.nickname == nickname:
                return player
        return None

    @property
    def total_kills(self) -> int:
        return sum(p.kill_count for p in self.players)

    def to_payload(self) -> dict[str, Any]:
        """Encode as the JSON-ready stats payload."""
        model = StatsPayloadModel(
            match_id=self.match_id,
            data=[p.to_model() for p in self.players],
        )
        return model.model_dump(by_alias=True)

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_payload(), indent=indent)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> MatchAggregateResult:
        """Decode a stats payload (raises pydantic.ValidationError if invalid)."""
        model = StatsPayloadModel.model_validate(payload)
        return cls(
            match_id=model.match_id,
            players=[PlayerRecord.from_model(p) for p in model.data],
        )

    @classmethod
    def from_json(cls, text: str) -> MatchAggregateResult:
        return cls.from_payload(json.loads(text))
