"""
Statistics Aggregation Engine

Consumes the ordered event stream of one match and builds per-player
statistics: kills and deaths (with overview positions, headshot, wallbang
and entry flags), assists, bomb plants, defusals and effective flashes.

Architecture:
- Single pass, events applied strictly in chronological order
- Round lifecycle gate decides whether an event counts (warm-up excluded)
- Player records keyed by nickname, kept in roster-registration order

Rules:
- Entry Kill: First kill of the round
- Flash Effectiveness: Blinds > 2.0 seconds on an enemy (not observers)
- Suicides add a death but no kill
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from matchlens.config import AggregationConfig
from matchlens.constants import OBSERVER_TEAMS
from matchlens.errors import CalibrationError, MalformedEventError
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
    check_position,
)
from matchlens.lifecycle import RoundLifecycleGate
from matchlens.map_data import MapCalibration, map_to_pixel
from matchlens.models import DeathEvent, KillEvent, MatchAggregateResult, PlayerRecord

logger = logging.getLogger(__name__)


class StatAggregator:
    """
    Stateful reducer over the event stream of a single match.

    One instance per match run; instances share no state.

    Usage:
        aggregator = StatAggregator("match-1", calibration=get_calibration("de_dust2"))
        for event in events:
            aggregator.apply(event)
        result = aggregator.finalize()
    """

    def __init__(
        self,
        match_id: str,
        calibration: MapCalibration | None = None,
        config: AggregationConfig | None = None,
    ):
        self.match_id = match_id
        self.calibration = calibration
        self.config = config or AggregationConfig()
        self.gate = RoundLifecycleGate()

        # Nicknames seen via PlayerConnect, in registration order
        self._roster: dict[str, None] = {}
        self._players: dict[str, PlayerRecord] = {}

        self.events_applied = 0
        self.kills_counted = 0

        self._handlers = {
            PlayerConnect: self._on_player_connect,
            MatchStart: self._on_match_start,
            RoundStart: self._on_round_start,
            RoundEnd: self._on_round_end,
            BombPlanted: self._on_bomb_planted,
            BombDefused: self._on_bomb_defused,
            PlayerFlashed: self._on_player_flashed,
            Kill: self._on_kill,
        }

    def use_calibration(self, calibration: MapCalibration) -> None:
        """Bind the map calibration used to place kills and deaths."""
        self.calibration = calibration

    @property
    def players(self) -> dict[str, PlayerRecord]:
        return self._players

    def apply(self, event: Event) -> None:
        """Apply a single event to the aggregated state."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise MalformedEventError(event, "kind", "unsupported event type")
        handler(event)
        self.events_applied += 1

    def apply_all(self, events: Iterable[Event]) -> None:
        for event in events:
            self.apply(event)

    def finalize(self) -> MatchAggregateResult:
        """Build the result; records are listed in roster order."""
        result = MatchAggregateResult(
            match_id=self.match_id,
            players=list(self._players.values()),
        )
        logger.info(
            f"Aggregation complete for match {self.match_id}: "
            f"{len(result.players)} players, "
            f"{self.kills_counted} kills from {self.events_applied} events"
        )
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _counts_utility(self) -> bool:
        return self.gate.counting_enabled() or not self.config.gate_utility_events

    def _on_player_connect(self, event: PlayerConnect) -> None:
        if not event.player:
            raise MalformedEventError(event, "player", "empty nickname")
        if self.gate.counting_enabled():
            logger.debug(f"Ignoring late connect of {event.player}")
            return
        self._roster.setdefault(event.player, None)

    def _on_match_start(self, event: MatchStart) -> None:
        self.gate.on_match_start()
        for nickname in self._roster:
            if nickname not in self._players:
                self._players[nickname] = PlayerRecord(nickname=nickname)
        logger.debug(f"Match started with {len(self._players)} players")

    def _on_round_start(self, event: RoundStart) -> None:
        self.gate.on_round_start()

    def _on_round_end(self, event: RoundEnd) -> None:
        self.gate.on_round_end()

    def _on_bomb_planted(self, event: BombPlanted) -> None:
        record = self._utility_record(event.player)
        if record is not None:
            record.bomb_plants += 1

    def _on_bomb_defused(self, event: BombDefused) -> None:
        record = self._utility_record(event.player)
        if record is not None:
            record.defusals += 1

    def _utility_record(self, nickname: str) -> PlayerRecord | None:
        if not self._counts_utility():
            return None
        record = self._players.get(nickname)
        if record is None:
            logger.debug(f"Ignoring event for unregistered player {nickname!r}")
        return record

    def _on_player_flashed(self, event: PlayerFlashed) -> None:
        duration = event.flash_duration
        if not math.isfinite(duration) or duration < 0:
            raise MalformedEventError(event, "flash_duration", f"invalid duration {duration!r}")

        if not self._counts_utility():
            return
        if int(event.team_of_attacker) == int(event.team_of_victim):
            return
        if not event.victim or int(event.team_of_victim) in OBSERVER_TEAMS:
            return
        if duration <= self.config.effective_flash_seconds:
            return

        record = self._players.get(event.attacker)
        if record is not None:
            record.players_flashed += 1

    def _on_kill(self, event: Kill) -> None:
        if not self.gate.counting_enabled():
            return
        if self.calibration is None:
            raise CalibrationError(
                f"Kill at tick {event.tick} applied before a map calibration was resolved"
            )
        if not event.victim:
            raise MalformedEventError(event, "victim", "victim is missing")
        if event.penetrated_objects < 0:
            raise MalformedEventError(
                event, "penetrated_objects", f"negative count {event.penetrated_objects}"
            )

        victim_world = check_position(event, "victim_position", event.victim_position)
        if event.killer is None:
            killer_world = victim_world
        else:
            killer_world = check_position(event, "killer_position", event.killer_position)

        killer_px = map_to_pixel(killer_world[0], killer_world[1], self.calibration)
        victim_px = map_to_pixel(victim_world[0], victim_world[1], self.calibration)
        was_entry = self.gate.consume_entry_kill_flag()

        if event.killer is not None and not event.is_suicide:
            killer_record = self._players.get(event.killer)
            if killer_record is not None:
                killer_record.kills.append(
                    KillEvent(
                        victim=event.victim,
                        killer_position=killer_px,
                        victim_position=victim_px,
                        weapon=event.weapon,
                        was_headshot=event.is_headshot,
                        was_wallbang=event.is_wallbang,
                        was_entry=was_entry,
                    )
                )
                self.kills_counted += 1

        victim_record = self._players.get(event.victim)
        if victim_record is not None:
            victim_record.deaths.append(
                DeathEvent(
                    killer=event.killer,
                    killer_position=killer_px,
                    victim_position=victim_px,
                    weapon=event.weapon,
                    was_headshot=event.is_headshot,
                    was_wallbang=event.is_wallbang,
                    was_entry=was_entry,
                )
            )

        if event.assister and event.assister not in (event.killer, event.victim):
            assister_record = self._players.get(event.assister)
            if assister_record is not None:
                assister_record.assists += 1
