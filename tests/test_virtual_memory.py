"""Tests for demand paging with a page table."""

import pytest

from engine import InvalidConfiguration, VirtualMemoryEngine


def assert_page_table_consistent(engine):
    for page, frame in engine.page_table.items():
        if frame is not None:
            assert engine.frames.slots[frame] == page
    for frame, page in enumerate(engine.frames.slots):
        if page is not None:
            assert engine.page_table[page] == frame


class TestAddressSplit:
    """Logical address -> (page, offset)."""

    @pytest.mark.parametrize("ref, expected", [
        (0, (0, 0)),
        (99, (0, 99)),
        (100, (1, 0)),
        (250, (2, 50)),
        (1234, (12, 34)),
    ])
    def test_split(self, ref, expected) -> None:
        """page = ref // size, offset = ref % size."""
        engine = VirtualMemoryEngine(100, 2, [])
        assert engine.split(ref) == expected

    def test_outcome_carries_page_and_offset(self) -> None:
        """Each step reports the page and offset it resolved."""
        engine = VirtualMemoryEngine(64, 2, [130])
        outcome = engine.step()
        assert (outcome.page, outcome.offset) == (2, 2)

    def test_bad_page_size(self) -> None:
        """Page size must be positive."""
        with pytest.raises(InvalidConfiguration):
            VirtualMemoryEngine(0, 2, [1])


class TestDemandPaging:
    """Faults, hits and eviction."""

    def test_fifo_evicts_first_loaded_page(self) -> None:
        """Page 0 is evicted by page 2 and faults again when revisited."""
        engine = VirtualMemoryEngine(100, 2, [50, 150, 250, 50], "FIFO")
        outcomes = engine.run()
        assert engine.state.faults == 4
        assert engine.state.hits == 0
        assert [o.page for o in outcomes] == [0, 1, 2, 0]
        assert outcomes[2].slot == 0
        assert outcomes[2].evicted == 0
        assert outcomes[3].evicted == 1
        assert engine.page_table == {0: 1, 1: None, 2: 0}

    def test_hit_on_same_page(self) -> None:
        """Two addresses in one page share a frame."""
        engine = VirtualMemoryEngine(100, 2, [10, 90])
        first, second = engine.run()
        assert first.is_fault
        assert second.is_hit
        assert second.slot == first.slot

    def test_free_frame_fill_has_no_eviction(self) -> None:
        """Filling a free frame evicts nothing."""
        engine = VirtualMemoryEngine(100, 3, [0, 100])
        outcomes = engine.run()
        assert [o.evicted for o in outcomes] == [None, None]
        assert [o.slot for o in outcomes] == [0, 1]

    def test_lru_keeps_recent_page(self) -> None:
        """LRU evicts the page whose frame was used least recently."""
        engine = VirtualMemoryEngine(100, 2, [0, 100, 0, 200], "LRU")
        outcomes = engine.run()
        assert outcomes[2].is_hit
        assert outcomes[3].evicted == 1
        assert engine.resident_pages() == {0: 0, 2: 1}

    def test_entries_never_deleted(self) -> None:
        """Evicted pages stay in the page table as unmapped."""
        engine = VirtualMemoryEngine(10, 1, [5, 15, 25])
        engine.run()
        assert engine.page_table == {0: None, 1: None, 2: 0}

    @pytest.mark.parametrize("policy", ["FIFO", "LRU"])
    def test_page_table_matches_frames(self, policy) -> None:
        """A page is mapped exactly when it occupies that frame."""
        refs = [50, 150, 250, 50, 320, 120, 40, 260, 510, 130, 0, 499]
        engine = VirtualMemoryEngine(100, 3, refs, policy)
        while not engine.queue.exhausted:
            engine.step()
            assert_page_table_consistent(engine)
            state = engine.state
            assert state.hits + state.faults == state.processed

    def test_exhausted_log_and_noop(self) -> None:
        """The final step logs completion and further steps are no-ops."""
        engine = VirtualMemoryEngine(100, 1, [5])
        engine.step()
        assert "Virtual ref sequence finished" in engine.log.messages()
        assert engine.step().exhausted
        assert engine.state.processed == 1

    def test_reset_clears_page_table(self) -> None:
        """Reset empties frames and the page table but keeps the sequence."""
        engine = VirtualMemoryEngine(100, 2, [50, 150])
        engine.run()
        engine.reset()
        assert engine.page_table == {}
        assert engine.frames.slots == [None, None]
        assert engine.queue.refs == (50, 150)
        assert engine.page_size == 100
        assert engine.snapshot()["history"] == []
