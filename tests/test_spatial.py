"""Tests for the SpatialPointCollector."""

import pytest

from conftest import make_kill
from matchlens.errors import MalformedEventError
from matchlens.events import BombPlanted, MatchStart
from matchlens.spatial import SpatialPoint, SpatialPointCollector


class TestCollector:
    """Tests for kill/death point collection."""

    def test_kill_and_death_points(self, dust2):
        collector = SpatialPointCollector("P1", dust2)
        collector.apply_all([
            make_kill(killer="P1", victim="P2", killer_position=(-2476.0, 3239.0)),
            make_kill(killer="P2", victim="P1", victim_position=(-2432.0, 3195.0)),
        ])

        assert collector.kill_points() == [SpatialPoint(0.0, 0.0)]
        assert collector.death_points() == [pytest.approx(SpatialPoint(10.0, 10.0))]

    def test_self_kill_in_both_series(self, unit_calibration):
        collector = SpatialPointCollector("P1", unit_calibration)
        collector.apply(make_kill(killer="P1", victim="P1",
                                  killer_position=(1.0, 1.0), victim_position=(1.0, 1.0)))

        assert len(collector.kill_points()) == 1
        assert len(collector.death_points()) == 1

    def test_no_warmup_gating(self, unit_calibration):
        """Kills before MatchStart are still collected."""
        collector = SpatialPointCollector("P1", unit_calibration)
        collector.apply_all([make_kill(), MatchStart(), BombPlanted(player="P1")])

        assert len(collector.kill_points()) == 1

    def test_other_players_ignored(self, unit_calibration):
        collector = SpatialPointCollector("P9", unit_calibration)
        collector.apply(make_kill())

        assert collector.kill_points() == []
        assert collector.death_points() == []

    def test_world_death_of_tracked_player(self, unit_calibration):
        collector = SpatialPointCollector("P2", unit_calibration)
        collector.apply(make_kill(killer=None, killer_position=None, victim_position=(3.0, 4.0)))

        assert collector.death_points() == [SpatialPoint(3.0, -4.0)]

    def test_missing_killer_position(self, unit_calibration):
        collector = SpatialPointCollector("P1", unit_calibration)

        with pytest.raises(MalformedEventError):
            collector.apply(make_kill(killer_position=None))

    def test_series_returns_copies(self, unit_calibration):
        collector = SpatialPointCollector("P1", unit_calibration)
        collector.apply(make_kill())
        collector.kill_points().clear()

        assert len(collector.series("kills")) == 1
        assert collector.series("deaths") == []

    def test_unknown_series_kind(self, unit_calibration):
        with pytest.raises(ValueError):
            SpatialPointCollector("P1", unit_calibration).series("assists")

    def test_non_finite_victim_position(self, unit_calibration):
        collector = SpatialPointCollector("P2", unit_calibration)

        with pytest.raises(MalformedEventError) as exc_info:
            collector.apply(make_kill(victim_position=(float("inf"), 0.0)))
        assert exc_info.value.field == "victim_position"
        assert collector.death_points() == []

    def test_non_finite_killer_position(self, unit_calibration):
        collector = SpatialPointCollector("P1", unit_calibration)

        with pytest.raises(MalformedEventError):
            collector.apply(make_kill(killer_position=(0.0, float("nan"))))
