"""Shared fixtures for MatchLens tests."""

import pytest

from matchlens.events import Kill, MatchStart, PlayerConnect, RoundEnd, RoundStart
from matchlens.map_data import MapCalibration, get_calibration


@pytest.fixture
def dust2() -> MapCalibration:
    """de_dust2: pos_x=-2476, pos_y=3239, scale=4.4."""
    return get_calibration("de_dust2")


@pytest.fixture
def unit_calibration() -> MapCalibration:
    """Identity-like calibration: pixel = (x, -y)."""
    return MapCalibration(map_name="de_test", pos_x=0.0, pos_y=0.0, scale=1.0)


@pytest.fixture
def live_prelude():
    """Two players connect, match starts, warm-up round ends, a round starts."""
    return [
        PlayerConnect(player="P1"),
        PlayerConnect(player="P2"),
        MatchStart(),
        RoundEnd(),
        RoundStart(),
    ]


def make_kill(killer="P1", victim="P2", **kwargs) -> Kill:
    defaults = dict(
        weapon="ak47",
        is_headshot=False,
        penetrated_objects=0,
        killer_position=(0.0, 0.0),
        victim_position=(10.0, -10.0),
    )
    defaults.update(kwargs)
    return Kill(killer=killer, victim=victim, **defaults)
