"""
Round lifecycle tracking.

Decides whether the match has progressed past warm-up (so events count
towards statistics) and which kill is the entry kill of a round.

    NOT_STARTED --MatchStart--> FIRST_ROUND_PENDING --RoundEnd--> LIVE

The recorded warm-up round never contributes statistics: counting only
begins once the first RoundEnd after MatchStart has been seen. The entry
flag is orthogonal to the phase and is re-armed on every RoundStart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class MatchPhase(StrEnum):
    NOT_STARTED = "not_started"
    FIRST_ROUND_PENDING = "first_round_pending"
    LIVE = "live"


@dataclass
class RoundLifecycleState:
    """Snapshot of the lifecycle flags."""

    match_started: bool = False
    first_round_ended: bool = False
    entry_kill_done_this_round: bool = False


class RoundLifecycleGate:
    """
    State machine owned by a single aggregator/collector instance.

    Usage:
        gate = RoundLifecycleGate()
        gate.on_match_start()
        gate.on_round_end()
        gate.on_round_start()
        if gate.counting_enabled():
            is_entry = gate.consume_entry_kill_flag()
    """

    def __init__(self) -> None:
        self.state = RoundLifecycleState()

    @property
    def phase(self) -> MatchPhase:
        if not self.state.match_started:
            return MatchPhase.NOT_STARTED
        if not self.state.first_round_ended:
            return MatchPhase.FIRST_ROUND_PENDING
        return MatchPhase.LIVE

    def on_match_start(self) -> None:
        self.state.match_started = True

    def on_round_start(self) -> None:
        self.state.entry_kill_done_this_round = False

    def on_round_end(self) -> None:
        # RoundEnd before MatchStart belongs to warm-up and is ignored
        if self.state.match_started and not self.state.first_round_ended:
            self.state.first_round_ended = True
            logger.debug("First round skipped, statistics counting enabled")

    def counting_enabled(self) -> bool:
        """True once the match started and the warm-up round has ended."""
        return self.state.match_started and self.state.first_round_ended

    def consume_entry_kill_flag(self) -> bool:
        """Return True for the first call after a RoundStart, False after that."""
        if self.state.entry_kill_done_this_round:
            return False
        self.state.entry_kill_done_this_round = True
        return True
