"""Tests for the autoplay scheduler."""

import time

from autoplay import Autoplay
from config import MIN_INTERVAL_MS
from engine import PagingEngine, Segment, SegmentationEngine


def no_sleep(_):
    pass


class TestRunBlocking:
    """Inline stepping."""

    def test_runs_until_exhausted(self) -> None:
        """The loop stops after the last reference."""
        engine = PagingEngine(3, [1, 2, 3, 4, 1, 2, 5], "FIFO")
        outcomes = Autoplay(engine).run_blocking(sleep=no_sleep)
        assert len(outcomes) == 7
        assert engine.queue.exhausted
        assert engine.state.running is False

    def test_max_steps(self) -> None:
        """max_steps bounds the run, e.g. for segmentation."""
        engine = SegmentationEngine([Segment("code", 0, 9)])
        engine.access("code:1")
        outcomes = Autoplay(engine).run_blocking(max_steps=3, sleep=no_sleep)
        assert len(outcomes) == 3
        assert engine.state.hits == 4

    def test_on_step_callback(self) -> None:
        """Every outcome is passed to the callback."""
        seen = []
        engine = PagingEngine(1, [1, 1], "LRU")
        Autoplay(engine).run_blocking(on_step=seen.append, sleep=no_sleep)
        assert [o.is_hit for o in seen] == [False, True]

    def test_interval_clamped(self) -> None:
        """Intervals below 50 ms are raised to the minimum."""
        player = Autoplay(PagingEngine(1, []), interval_ms=5)
        assert player.interval_ms == MIN_INTERVAL_MS
        assert player.interval == 0.05


class TestBackground:
    """Threaded autoplay."""

    def test_stops_itself_when_exhausted(self) -> None:
        """The worker ends once the sequence is done."""
        engine = PagingEngine(2, [1, 2, 3], "FIFO")
        player = Autoplay(engine, interval_ms=MIN_INTERVAL_MS)
        player.start()
        deadline = time.time() + 5
        while player.running and time.time() < deadline:
            time.sleep(0.02)
        assert not player.running
        assert engine.state.processed == 3
        assert "Autoplay stopped" in engine.log.messages()

    def test_start_twice_is_noop(self) -> None:
        """A second start keeps the same worker."""
        engine = PagingEngine(2, list(range(100)), "FIFO")
        player = Autoplay(engine, interval_ms=1000)
        player.start()
        worker = player._thread
        player.start()
        assert player._thread is worker
        player.stop()
        assert not player.running

    def test_toggle_starts_and_stops(self) -> None:
        """toggle() flips between running and stopped."""
        engine = PagingEngine(2, list(range(100)), "FIFO")
        player = Autoplay(engine, interval_ms=1000)
        player.toggle()
        assert player.running
        player.toggle()
        assert not player.running
        assert engine.state.running is False

    def test_last_outcome_kept(self) -> None:
        """The most recent step is available for display."""
        engine = PagingEngine(1, [1, 1], "FIFO")
        player = Autoplay(engine)
        player.run_blocking(sleep=no_sleep)
        assert player.last.is_hit

    def test_stop_before_first_tick(self) -> None:
        """Stopping cancels the pending tick, so no step runs."""
        engine = PagingEngine(2, [1, 2, 3], "FIFO")
        player = Autoplay(engine, interval_ms=1000)
        player.start()
        assert engine.state.running is True
        player.stop()
        assert engine.state.processed == 0
        assert engine.state.running is False
