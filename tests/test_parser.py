"""Tests for the demoparser2 wrapper."""

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from matchlens.errors import DecodeError
from matchlens.events import (
    BombDefused,
    BombPlanted,
    Kill,
    MatchStart,
    PlayerConnect,
    PlayerFlashed,
    RoundEnd,
    RoundStart,
)
from matchlens.parser import DemoDecoder, decode_demo, event_from_record


@pytest.fixture
def demo_file(tmp_path):
    path = tmp_path / "match.dem"
    path.write_bytes(b"PBDEMS2\x00")
    return path


def death_record(**overrides):
    record = {
        "tick": 500,
        "attacker_name": "P1",
        "user_name": "P2",
        "assister_name": None,
        "weapon": "ak47",
        "headshot": True,
        "penetrated": 1,
        "attacker_X": 100.0,
        "attacker_Y": 200.0,
        "user_X": 150.0,
        "user_Y": 250.0,
    }
    record.update(overrides)
    return record


def fake_parser(events, map_name="de_dust2"):
    parser = MagicMock()
    parser.parse_header.return_value = {"map_name": map_name}
    parser.parse_events.return_value = events
    return parser


class TestEventFromRecord:
    """Tests for record conversion."""

    def test_player_death(self):
        event = event_from_record("player_death", death_record())

        assert isinstance(event, Kill)
        assert event.killer == "P1"
        assert event.victim == "P2"
        assert event.is_headshot is True
        assert event.is_wallbang is True
        assert event.killer_position == (100.0, 200.0)
        assert event.victim_position == (150.0, 250.0)
        assert event.assister is None
        assert event.tick == 500

    def test_world_death_has_no_killer(self):
        record = death_record(attacker_name=np.nan, attacker_X=np.nan, attacker_Y=np.nan)
        event = event_from_record("player_death", record)

        assert event.killer is None
        assert event.killer_position is None

    def test_death_without_victim_position(self):
        with pytest.raises(DecodeError):
            event_from_record("player_death", death_record(user_X=None))

    def test_player_blind(self):
        record = {
            "tick": 10,
            "attacker_name": "P1",
            "user_name": "P2",
            "attacker_team_num": 2,
            "user_team_num": 3,
            "blind_duration": 2.7,
        }
        event = event_from_record("player_blind", record)

        assert event == PlayerFlashed("P1", "P2", 3, 2, 2.7, tick=10)

    def test_bomb_and_connect(self):
        assert event_from_record("bomb_planted", {"tick": 3, "user_name": "P1"}) == BombPlanted(
            "P1", tick=3
        )
        assert event_from_record("player_connect", {"tick": 1, "name": "P1"}) == PlayerConnect(
            "P1", tick=1
        )

    def test_irrelevant_records_skipped(self):
        assert event_from_record("player_connect", {"tick": 1, "name": ""}) is None
        assert event_from_record("weapon_fire", {"tick": 1}) is None


class TestDemoDecoder:
    """Tests for DemoDecoder."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(DecodeError):
            DemoDecoder(tmp_path / "nope.dem")

    def test_wrong_suffix(self, tmp_path):
        path = tmp_path / "match.txt"
        path.write_text("x")
        with pytest.raises(DecodeError):
            DemoDecoder(path)

    def test_events_in_tick_order(self, demo_file):
        """Events are merged across types by tick."""
        events = [
            ("player_connect", pd.DataFrame([{"tick": 1, "name": "P1"}, {"tick": 2, "name": "P2"}])),
            ("begin_new_match", pd.DataFrame([{"tick": 100}])),
            ("round_end", pd.DataFrame([{"tick": 200}])),
            ("round_start", pd.DataFrame([{"tick": 200}])),
            ("player_death", pd.DataFrame([death_record(tick=200)])),
        ]
        with patch("matchlens.parser.Demoparser2", return_value=fake_parser(events)):
            demo = decode_demo(demo_file)

        assert demo.map_name == "de_dust2"
        assert [type(e) for e in demo.events] == [
            PlayerConnect,
            PlayerConnect,
            MatchStart,
            Kill,
            RoundEnd,
            RoundStart,
        ]
        assert demo.kill_count == 1

    def test_round_winning_events_precede_round_end(self, demo_file):
        """A kill or defuse on the round_end tick belongs to the ending round."""
        events = [
            ("round_start", pd.DataFrame([{"tick": 300}])),
            ("round_end", pd.DataFrame([{"tick": 300}])),
            ("bomb_defused", pd.DataFrame([{"tick": 300, "user_name": "P2"}])),
            ("player_death", pd.DataFrame([death_record(tick=300)])),
        ]
        with patch("matchlens.parser.Demoparser2", return_value=fake_parser(events)):
            demo = decode_demo(demo_file)

        assert [type(e) for e in demo.events] == [Kill, BombDefused, RoundEnd, RoundStart]

    def test_dict_result_accepted(self, demo_file):
        events = {"begin_new_match": pd.DataFrame([{"tick": 5}])}
        with patch("matchlens.parser.Demoparser2", return_value=fake_parser(events)):
            demo = decode_demo(demo_file)

        assert demo.events == [MatchStart(tick=5)]

    def test_parser_failure_wrapped(self, demo_file):
        parser = MagicMock()
        parser.parse_header.side_effect = RuntimeError("bad demo")
        with patch("matchlens.parser.Demoparser2", return_value=parser):
            with pytest.raises(DecodeError, match="bad demo"):
                decode_demo(demo_file)

    def test_missing_map_name(self, demo_file):
        with patch("matchlens.parser.Demoparser2", return_value=fake_parser([], map_name="")):
            with pytest.raises(DecodeError):
                decode_demo(demo_file)
