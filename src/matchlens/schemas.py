"""
MatchLens Data Contracts

Wire format of the statistics payload posted to the stats endpoint:

    {"matchId": str, "data": [PlayerData, ...]}

Field names are locked by the consumer of the payload; Python attribute
names are snake_case and map to the wire names through aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PositionModel(_WireModel):
    """A point in overview pixel space."""

    x: float = Field(alias="X")
    y: float = Field(alias="Y")


class KillRecordModel(_WireModel):
    victim: str
    killer_position: PositionModel = Field(alias="kPos")
    victim_position: PositionModel = Field(alias="vPos")
    wallbang: bool = Field(alias="wb")
    headshot: bool = Field(alias="hs")
    entry: bool
    weapon: str


class DeathRecordModel(_WireModel):
    # None for world deaths (fall damage, bomb, ...)
    killer: str | None
    killer_position: PositionModel = Field(alias="kPos")
    victim_position: PositionModel = Field(alias="vPos")
    wallbang: bool = Field(alias="wb")
    headshot: bool = Field(alias="hs")
    entry: bool
    weapon: str


class PlayerDataModel(_WireModel):
    nickname: str
    plants: int = Field(ge=0)
    defusals: int = Field(ge=0)
    flashed: int = Field(ge=0)
    assists: int = Field(default=0, ge=0)
    kills: list[KillRecordModel] = Field(default_factory=list)
    deaths: list[DeathRecordModel] = Field(default_factory=list)


class StatsPayloadModel(_WireModel):
    match_id: str = Field(alias="matchId")
    data: list[PlayerDataModel] = Field(default_factory=list)


class ParseRequest(BaseModel):
    """Body of POST /parse."""

    model_config = ConfigDict(populate_by_name=True)

    demo_url: str = Field(alias="demoUrl", min_length=1)
    nickname: str = Field(min_length=1)
    match_id: str = Field(alias="matchId", pattern=r"^[a-zA-Z0-9_-]{1,64}$")
