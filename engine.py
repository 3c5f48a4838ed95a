# engine.py
"""
Simulation engine for the memory management visualizer.

Three independent modules share one stepping / statistics protocol:
    - Paging: a fixed set of frames holding raw reference values
    - Segmentation: (segment, offset) -> physical address translation
    - Virtual memory: demand paging with a page table and physical frames

Every engine owns its own state and exposes a synchronous ``step()`` so it
can be driven by the Streamlit UI, the autoplay scheduler or a test.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from utils import parse_seg_address


# =============================================================================
# ERRORS
# =============================================================================

class SimulatorError(Exception):
    """Base class for every error raised by the simulator."""


class SegmentFault(SimulatorError):
    NOT_FOUND = "not found"
    OUT_OF_RANGE = "out of range"

    def __init__(self, reason: str, segment: Optional[str] = None, offset: Any = None):
        self.reason = reason
        self.segment = segment
        self.offset = offset
        if reason == self.NOT_FOUND:
            message = f"Segment {segment} not found → segment fault"
        else:
            message = f"Offset {offset} out of range → segment fault"
        super().__init__(message)


class SequenceExhausted(SimulatorError):
    """Stepping past the end of the loaded reference sequence."""


class InvalidConfiguration(SimulatorError):
    """A load parameter is missing or cannot be used."""


# =============================================================================
# SHARED STATE
# =============================================================================

class PolicyName:
    """
    Names of the available replacement policies.

    FIFO: replaces the slot that was filled earliest
    LRU:  replaces the slot whose recency stamp is the smallest
    """
    FIFO = "FIFO"
    LRU = "LRU"


class Result(Enum):
    HIT = "Hit"
    FAULT = "Fault"
    EXHAUSTED = "Exhausted"
    NOOP = "No-op"


@dataclass
class Outcome:
    """
    Structured result of a single step, consumed by the presentation layer.

    Attributes:
        result (Result): Hit, Fault, Exhausted or No-op
        index (Optional[int]): Position of the reference in the sequence
        reference (Any): The reference value that was resolved
        slot (Optional[int]): Frame slot that was hit, filled or replaced
        evicted (Any): Value (paging) or page (virtual) that was evicted
        page (Optional[int]): Page number (virtual memory only)
        offset (Optional[int]): Offset inside the page or segment
        address (Optional[int]): Physical address (segmentation only)
        error (Optional[str]): Fault description (segmentation only)
    """
    result: Result
    index: Optional[int] = None
    reference: Any = None
    slot: Optional[int] = None
    evicted: Any = None
    page: Optional[int] = None
    offset: Optional[int] = None
    address: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_hit(self) -> bool:
        return self.result is Result.HIT

    @property
    def is_fault(self) -> bool:
        return self.result is Result.FAULT

    @property
    def exhausted(self) -> bool:
        return self.result is Result.EXHAUSTED


class EventLog:
    """Timestamped, append-only log of everything the engine decides."""

    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now().strftime("%H:%M:%S"))
        self._entries: List[Tuple[str, str]] = []

    def append(self, message: str):
        self._entries.append((self._clock(), message))

    def messages(self) -> List[str]:
        return [msg for _, msg in self._entries]

    def tail(self, count: int = 20) -> List[str]:
        """Most recent entries, newest first."""
        return [f"[{ts}] {msg}" for ts, msg in self._entries[-count:][::-1]]

    def export(self) -> str:
        if not self._entries:
            return "No log available."
        return "\n".join(f"[{ts}] {msg}" for ts, msg in self._entries)

    def __len__(self):
        return len(self._entries)


@dataclass
class RunState:
    """
    Counters shared by every module.

    ``history`` holds one entry per charted access: 1 for a hit, 0 for a fault.
    """
    processed: int = 0
    hits: int = 0
    faults: int = 0
    running: bool = False
    history: List[int] = field(default_factory=list)

    def record_hit(self, chart: bool = True):
        self.processed += 1
        self.hits += 1
        if chart:
            self.history.append(1)

    def record_fault(self, chart: bool = True):
        self.processed += 1
        self.faults += 1
        if chart:
            self.history.append(0)

    def reset(self):
        self.processed = 0
        self.hits = 0
        self.faults = 0
        self.running = False
        self.history = []

    def stats(self, total_refs: int = 0) -> Dict[str, float]:
        """
        Derived statistics, recomputed on every call.

        Rates divide by ``max(1, processed)`` so an empty run reports 0.0.
        """
        denom = max(1, self.processed)
        return {
            "processed": self.processed,
            "hits": self.hits,
            "faults": self.faults,
            "hit_rate": round(self.hits / denom, 4),
            "fault_rate": round(self.faults / denom, 4),
            "total_refs": total_refs,
        }


class ReferenceQueue:
    """Ordered, immutable sequence of references plus a cursor."""

    def __init__(self, refs: Iterable[Any] = ()):
        self.refs: Tuple[Any, ...] = tuple(refs)
        self.cursor = 0

    def __len__(self):
        return len(self.refs)

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.refs)

    def current(self) -> Any:
        if self.exhausted:
            raise SequenceExhausted(f"cursor {self.cursor} past {len(self.refs)} references")
        return self.refs[self.cursor]

    def advance(self):
        if not self.exhausted:
            self.cursor += 1

    def rewind(self):
        self.cursor = 0


class FrameSet:
    """Exactly ``capacity`` slots, each empty (None) or holding one value."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise InvalidConfiguration(f"frame count must be >= 1, got {capacity}")
        self.capacity = capacity
        self.slots: List[Any] = [None] * capacity
        # Recency stamps, written only by the LRU policy
        self.stamps: List[int] = [0] * capacity

    def find(self, value: Any) -> Optional[int]:
        for i, held in enumerate(self.slots):
            if held is not None and held == value:
                return i
        return None

    def first_free(self) -> Optional[int]:
        for i, held in enumerate(self.slots):
            if held is None:
                return i
        return None

    @property
    def occupied(self) -> int:
        return sum(1 for held in self.slots if held is not None)

    @property
    def full(self) -> bool:
        return self.occupied == self.capacity

    def place(self, slot: int, value: Any) -> Any:
        """Store ``value`` in ``slot`` and return whatever was there before."""
        previous = self.slots[slot]
        self.slots[slot] = value
        return previous

    def clear(self):
        self.slots = [None] * self.capacity
        self.stamps = [0] * self.capacity


# =============================================================================
# REPLACEMENT POLICIES
# =============================================================================

class ReplacementPolicy:
    """
    Strategy for choosing a victim slot when every frame is occupied.

    ``select_victim`` is only called on a replacement miss. ``touch`` is
    called on every hit and every load so policies can track recency.
    """
    name = ""

    def select_victim(self, frames: FrameSet) -> int:
        raise NotImplementedError

    def touch(self, frames: FrameSet, slot: int, clock: int):
        pass

    def reset(self):
        pass


class FIFOPolicy(ReplacementPolicy):
    name = PolicyName.FIFO

    def __init__(self):
        self.cursor = 0

    def select_victim(self, frames: FrameSet) -> int:
        victim = self.cursor % frames.capacity
        self.cursor = (self.cursor + 1) % frames.capacity
        return victim

    def reset(self):
        self.cursor = 0


class LRUPolicy(ReplacementPolicy):
    name = PolicyName.LRU

    def select_victim(self, frames: FrameSet) -> int:
        # Strict comparison keeps the lowest index among equal stamps
        victim = 0
        lowest = float("inf")
        for i, stamp in enumerate(frames.stamps):
            if stamp < lowest:
                lowest = stamp
                victim = i
        return victim

    def touch(self, frames: FrameSet, slot: int, clock: int):
        frames.stamps[slot] = clock


def make_policy(name: str) -> ReplacementPolicy:
    key = str(name).strip().upper()
    if key == PolicyName.FIFO:
        return FIFOPolicy()
    if key == PolicyName.LRU:
        return LRUPolicy()
    raise ValueError(f"Unknown replacement policy: {name!r}")


# =============================================================================
# PAGING / VIRTUAL MEMORY ENGINES
# =============================================================================

class _FrameEngine:
    """
    Common machinery for the two engines that resolve a reference queue
    against a fixed frame set.

    Subclasses implement ``step()`` and call ``_load`` on a miss and
    ``_finish`` once the outcome is known.
    """
    finished_message = "Sequence finished"

    def __init__(self, capacity: int, refs: Iterable[Any], policy: str = PolicyName.FIFO):
        self.frames = FrameSet(capacity)
        self.queue = ReferenceQueue(refs)
        self.policy = make_policy(policy)
        self.state = RunState()
        self.log = EventLog()
        # index -> "hit" / "fault", for the reference timeline
        self.marks: Dict[int, str] = {}

    @property
    def capacity(self) -> int:
        return self.frames.capacity

    @property
    def fifo_cursor(self) -> int:
        return getattr(self.policy, "cursor", 0)

    @property
    def stamps(self) -> List[int]:
        return list(self.frames.stamps)

    def _load(self, value: Any, clock: int) -> Tuple[int, Any, bool]:
        """
        Place ``value`` after a miss.

        Returns:
            Tuple[int, Any, bool]: (slot, evicted value, replaced?)
        """
        free = self.frames.first_free()
        if free is not None:
            self.frames.place(free, value)
            self.policy.touch(self.frames, free, clock)
            return free, None, False

        victim = self.policy.select_victim(self.frames)
        evicted = self.frames.place(victim, value)
        self.policy.touch(self.frames, victim, clock)
        return victim, evicted, True

    def _exhausted(self) -> Outcome:
        self.log.append("All references processed.")
        self.state.running = False
        return Outcome(Result.EXHAUSTED, index=self.queue.cursor)

    def _finish(self, outcome: Outcome):
        self.marks[outcome.index] = "hit" if outcome.is_hit else "fault"
        self.queue.advance()
        if self.queue.exhausted:
            self.log.append(self.finished_message)

    def run(self) -> List[Outcome]:
        """Step until the sequence is exhausted."""
        outcomes = []
        while not self.queue.exhausted:
            outcomes.append(self.step())
        return outcomes

    def reset(self):
        """
        Zero counters, history and frames, keeping the loaded configuration
        (capacity, sequence, policy).
        """
        self.state.reset()
        self.queue.rewind()
        self.frames.clear()
        self.policy.reset()
        self.marks = {}
        self.log.append("State reset.")

    def stats(self) -> Dict[str, float]:
        return self.state.stats(total_refs=len(self.queue))

    def step(self) -> Outcome:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Any]:
        return {
            "processed": self.state.processed,
            "hits": self.state.hits,
            "faults": self.state.faults,
            "running": self.state.running,
            "cursor": self.queue.cursor,
            "refs": list(self.queue.refs),
            "frames": list(self.frames.slots),
            "stamps": self.stamps,
            "fifo_cursor": self.fifo_cursor,
            "policy": self.policy.name,
            "history": list(self.state.history),
        }


class PagingEngine(_FrameEngine):
    """
    Page replacement over raw reference values.

    Each reference is looked up in the frame set by value equality. On a
    miss the lowest empty slot is filled; once every slot is taken the
    replacement policy chooses the victim.
    """
    finished_message = "Finished paging sequence"

    def __init__(self, capacity: int, refs: Iterable[Any], policy: str = PolicyName.FIFO):
        super().__init__(capacity, refs, policy)
        self.log.append(
            f"Paging loaded. Frames={capacity}, refs={len(self.queue)}, algo={self.policy.name}"
        )

    def step(self) -> Outcome:
        try:
            ref = self.queue.current()
        except SequenceExhausted:
            return self._exhausted()

        index = self.queue.cursor
        clock = self.state.processed + 1
        self.log.append(f"Paging access {index}: {ref}")

        slot = self.frames.find(ref)
        if slot is not None:
            self.policy.touch(self.frames, slot, clock)
            self.state.record_hit()
            self.log.append(f"Hit in frame {slot}")
            outcome = Outcome(Result.HIT, index=index, reference=ref, slot=slot)
        else:
            slot, evicted, replaced = self._load(ref, clock)
            self.state.record_fault()
            self.log.append("Page fault")
            if replaced:
                self.log.append(f"Replacing frame {slot} (was {evicted})")
            else:
                self.log.append(f"Placed in free frame {slot}")
            outcome = Outcome(Result.FAULT, index=index, reference=ref, slot=slot, evicted=evicted)

        self._finish(outcome)
        return outcome


class VirtualMemoryEngine(_FrameEngine):
    """
    Demand paging with a page table.

    Each reference is a logical address split into (page, offset). The page
    table maps page -> frame, or None once the page has been evicted;
    entries are created on first load and never deleted.
    """
    finished_message = "Virtual ref sequence finished"

    def __init__(self, page_size: int, frame_count: int, refs: Iterable[int],
                 policy: str = PolicyName.FIFO):
        if page_size < 1:
            raise InvalidConfiguration(f"page size must be >= 1, got {page_size}")
        super().__init__(frame_count, refs, policy)
        self.page_size = page_size
        self.page_table: Dict[int, Optional[int]] = {}
        self.log.append(
            f"Virtual memory loaded. pageSize={page_size}, "
            f"physFrames={frame_count}, refs={len(self.queue)}"
        )

    def split(self, ref: int) -> Tuple[int, int]:
        """Logical address -> (page number, offset)."""
        return divmod(int(ref), self.page_size)

    def step(self) -> Outcome:
        try:
            ref = self.queue.current()
        except SequenceExhausted:
            return self._exhausted()

        index = self.queue.cursor
        clock = self.state.processed + 1
        page, offset = self.split(ref)
        self.log.append(f"Virtual access {index}: logical address {ref}")
        self.log.append(f"page={page}, offset={offset}")

        frame = self.page_table.get(page)
        if frame is not None:
            self.policy.touch(self.frames, frame, clock)
            self.state.record_hit()
            self.log.append(f"Page hit: page {page} in frame {frame}")
            outcome = Outcome(Result.HIT, index=index, reference=ref, slot=frame,
                              page=page, offset=offset)
        else:
            frame, old_page, replaced = self._load(page, clock)
            if replaced:
                self.page_table[old_page] = None
            self.page_table[page] = frame
            self.state.record_fault()
            self.log.append(f"Page fault for page {page}")
            if replaced:
                self.log.append(
                    f"Replaced frame {frame}: evicted page {old_page} -> loaded page {page}"
                )
            else:
                self.log.append(f"Loaded page {page} into free frame {frame}")
            outcome = Outcome(Result.FAULT, index=index, reference=ref, slot=frame,
                              evicted=old_page, page=page, offset=offset)

        self._finish(outcome)
        return outcome

    def resident_pages(self) -> Dict[int, int]:
        return {page: frame for page, frame in self.page_table.items() if frame is not None}

    def reset(self):
        super().reset()
        self.page_table = {}

    def snapshot(self) -> Dict[str, Any]:
        snap = super().snapshot()
        snap["page_size"] = self.page_size
        snap["page_table"] = dict(self.page_table)
        return snap


# =============================================================================
# SEGMENTATION
# =============================================================================

@dataclass(frozen=True)
class Segment:
    """
    A named logical region.

    Attributes:
        name (str): Segment name, e.g. "code"
        base (int): Physical base address
        limit (int): Inclusive upper bound on the offset
    """
    name: str
    base: int
    limit: int


class SegmentTable:
    """Mapping of segment name -> Segment, fixed once built."""

    def __init__(self, segments: Iterable[Segment] = ()):
        self._segments: Dict[str, Segment] = {}
        for seg in segments:
            self._segments[seg.name] = seg

    def __contains__(self, name):
        return name in self._segments

    def __len__(self):
        return len(self._segments)

    def __iter__(self):
        return iter(self._segments.values())

    def names(self) -> List[str]:
        return list(self._segments)

    def translate(self, name: str, offset: Any) -> int:
        """
        Resolve ``name:offset`` to a physical address.

        Raises:
            SegmentFault: unknown segment, or offset outside [0, limit]
        """
        seg = self._segments.get(name)
        if seg is None:
            raise SegmentFault(SegmentFault.NOT_FOUND, segment=name, offset=offset)
        if (isinstance(offset, bool) or not isinstance(offset, int)
                or offset < 0 or offset > seg.limit):
            raise SegmentFault(SegmentFault.OUT_OF_RANGE, segment=name, offset=offset)
        return seg.base + offset


class SegmentationEngine:
    """
    Stateless translation of single (segment, offset) accesses.

    Only the counters persist between calls. Translations are not charted.
    """

    def __init__(self, segments: Iterable[Segment]):
        self.table = SegmentTable(segments)
        self.state = RunState()
        self.log = EventLog()
        self.pending: Optional[str] = None
        self.log.append(f"Segments loaded: {', '.join(self.table.names())}")

    @property
    def segments(self) -> List[Segment]:
        return list(self.table)

    def translate(self, name: str, offset: Any) -> Outcome:
        self.log.append(f"Segmentation access: {name}:{offset}")
        try:
            address = self.table.translate(name, offset)
        except SegmentFault as fault:
            self.state.record_fault(chart=False)
            self.log.append(str(fault))
            return Outcome(Result.FAULT, reference=name, offset=offset, error=fault.reason)

        self.state.record_hit(chart=False)
        self.log.append(f"Translated logical {name}:{offset} → physical address {address}")
        return Outcome(Result.HIT, reference=name, offset=offset, address=address)

    def access(self, raw: str) -> Outcome:
        """Translate a ``name:offset`` string and remember it for ``step()``."""
        parsed = parse_seg_address(raw)
        if parsed is None:
            self.log.append("No segmentation address provided")
            return Outcome(Result.NOOP)
        self.pending = raw
        return self.translate(*parsed)

    def step(self) -> Outcome:
        """Re-issue the last access; segmentation has no sequence to exhaust."""
        if self.pending is None:
            self.log.append("No segmentation address provided")
            return Outcome(Result.NOOP)
        return self.access(self.pending)

    def reset(self):
        self.state.reset()
        self.log.append("State reset.")

    def stats(self) -> Dict[str, float]:
        return self.state.stats(total_refs=0)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "processed": self.state.processed,
            "hits": self.state.hits,
            "faults": self.state.faults,
            "running": self.state.running,
            "segments": [(s.name, s.base, s.limit) for s in self.table],
        }
