"""
Kill/death location collection for a single tracked player.

Produces two point series in overview pixel space, one for the player's
kill positions and one for their death positions, ready for the density
surface builder.

Unlike StatAggregator, no warm-up gating is applied: kills from the warm-up
round show up in heatmaps even though they are excluded from statistics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NamedTuple

from matchlens.events import Event, Kill, check_position
from matchlens.map_data import MapCalibration, map_to_pixel

logger = logging.getLogger(__name__)


class SpatialPoint(NamedTuple):
    x: float
    y: float


PointSeries = list[SpatialPoint]


class SpatialPointCollector:
    """Collects kill and death locations of ``tracked_nickname``."""

    def __init__(self, tracked_nickname: str, calibration: MapCalibration):
        self.tracked_nickname = tracked_nickname
        self.calibration = calibration
        self._kill_points: PointSeries = []
        self._death_points: PointSeries = []

    def apply(self, event: Event) -> None:
        if not isinstance(event, Kill):
            return

        # A self-kill lands in both series
        if event.killer is not None and event.killer == self.tracked_nickname:
            position = check_position(event, "killer_position", event.killer_position)
            self._kill_points.append(self._map(position))

        if event.victim == self.tracked_nickname:
            position = check_position(event, "victim_position", event.victim_position)
            self._death_points.append(self._map(position))

    def apply_all(self, events: Iterable[Event]) -> None:
        for event in events:
            self.apply(event)

    def _map(self, position: tuple[float, float]) -> SpatialPoint:
        x, y = map_to_pixel(position[0], position[1], self.calibration)
        return SpatialPoint(x, y)

    def kill_points(self) -> PointSeries:
        return list(self._kill_points)

    def death_points(self) -> PointSeries:
        return list(self._death_points)

    def series(self, kind: str) -> PointSeries:
        """Point series by heatmap kind ("kills" or "deaths")."""
        if kind == "kills":
            return self.kill_points()
        if kind == "deaths":
            return self.death_points()
        raise ValueError(f"Unknown heatmap kind: {kind}")
