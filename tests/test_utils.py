"""Tests for timing helpers."""

import logging

import pytest

from matchlens.utils import OperationTimer, timed


class TestTiming:
    """Tests for timed and OperationTimer."""

    def test_timed_preserves_result(self, caplog):
        @timed
        def add(a, b):
            return a + b

        with caplog.at_level(logging.INFO, logger="matchlens.utils"):
            assert add(2, 3) == 5
        assert "add took" in caplog.text
        assert add.__name__ == "add"

    def test_timed_logs_on_failure(self, caplog):
        @timed
        def boom():
            raise RuntimeError("x")

        with caplog.at_level(logging.INFO, logger="matchlens.utils"):
            with pytest.raises(RuntimeError):
                boom()
        assert "boom took" in caplog.text

    def test_timer_logs_elapsed_ms(self, caplog):
        with caplog.at_level(logging.INFO, logger="matchlens.utils"):
            with OperationTimer("Match m1") as timer:
                pass
        assert timer.elapsed_ms >= 0
        assert "Match m1 took" in caplog.text

    def test_timer_does_not_swallow(self, caplog):
        with pytest.raises(ValueError):
            with OperationTimer("broken"):
                raise ValueError("boom")
        assert "broken aborted after" in caplog.text
