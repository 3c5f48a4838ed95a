# config.py
"""
Load configuration for the three simulator modules.

Values typed into the UI are coerced here. Anything unusable is replaced
by its default and reported as a warning so the simulator always loads.
"""

from dataclasses import dataclass, field
from typing import Any, List, Union

from engine import (
    InvalidConfiguration,
    PagingEngine,
    PolicyName,
    Segment,
    SegmentationEngine,
    VirtualMemoryEngine,
)
from utils import parse_number, parse_refs, parse_segments

# MODULES #
PAGING = "paging"
SEGMENTATION = "segmentation"
VIRTUAL = "virtual"
MODULES = (PAGING, SEGMENTATION, VIRTUAL)

# DEFAULTS #
DEFAULT_CAPACITY = 3
DEFAULT_PAGE_SIZE = 100
DEFAULT_POLICY = PolicyName.FIFO
DEFAULT_REFERENCES = "7, 0, 1, 2, 0, 3, 0, 4, 2, 3, 0, 3, 2"
DEFAULT_VIRTUAL_REFERENCES = "50, 150, 250, 50, 320, 120, 40, 260"
DEFAULT_SEGMENTS = "code:0:499, data:500:299, stack:1000:199"
DEFAULT_SEG_ACCESS = "code:120"

# AUTOPLAY #
DEFAULT_INTERVAL_MS = 700
MIN_INTERVAL_MS = 50


@dataclass
class LoadResult:
    engine: Any
    warnings: List[str] = field(default_factory=list)


# -----------------------------
# Strict validators
# -----------------------------
def validate_positive_int(value, label: str) -> int:
    number = parse_number(str(value).strip()) if value is not None else None
    if not isinstance(number, int) or isinstance(number, bool) or number < 1:
        raise InvalidConfiguration(f"{label} must be an integer >= 1, got {value!r}")
    return number


def validate_policy(value, label: str = "policy") -> str:
    name = str(value or "").strip().upper()
    if name not in (PolicyName.FIFO, PolicyName.LRU):
        raise InvalidConfiguration(f"{label} must be FIFO or LRU, got {value!r}")
    return name


def validate_address(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidConfiguration(f"virtual references must be non-negative integers, got {value!r}")
    return value


# -----------------------------
# Lenient coercion (loader)
# -----------------------------
def _coerce(validator, value, default, label, warnings):
    try:
        return validator(value, label)
    except InvalidConfiguration as exc:
        warnings.append(f"{exc}; using default {label}={default}")
        return default


def _references(raw: Union[str, List[Any], None]) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return parse_refs(raw)
    return list(raw)


def _virtual_references(raw, warnings) -> List[int]:
    refs = []
    for ref in _references(raw):
        try:
            refs.append(validate_address(ref))
        except InvalidConfiguration as exc:
            warnings.append(f"{exc}; dropped")
    return refs


def _segments(raw) -> List[Segment]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = parse_segments(raw)
    return [seg if isinstance(seg, Segment) else Segment(*seg) for seg in raw]


def load_config(module: str,
                frame_count: Any = None,
                references: Any = None,
                policy: str = DEFAULT_POLICY,
                segments: Any = None,
                page_size: Any = None) -> LoadResult:
    """
    Build a fresh engine for ``module``.

    Args:
        module (str): "paging", "segmentation" or "virtual"
        frame_count: Number of frames (paging / virtual)
        references: Reference string or list (paging / virtual)
        policy (str): "FIFO" or "LRU" (paging / virtual)
        segments: ``name:base:limit`` string or list of tuples (segmentation)
        page_size: Page size (virtual)

    Returns:
        LoadResult: the engine plus any warnings raised while coercing

    Raises:
        InvalidConfiguration: If ``module`` is not a known module
    """
    warnings: List[str] = []

    if module == PAGING:
        capacity = _coerce(validate_positive_int, frame_count, DEFAULT_CAPACITY, "frameCount", warnings)
        algo = _coerce(validate_policy, policy, DEFAULT_POLICY, "policy", warnings)
        engine = PagingEngine(capacity, _references(references), algo)
    elif module == VIRTUAL:
        size = _coerce(validate_positive_int, page_size, DEFAULT_PAGE_SIZE, "pageSize", warnings)
        capacity = _coerce(validate_positive_int, frame_count, DEFAULT_CAPACITY,
                           "physicalFrameCount", warnings)
        algo = _coerce(validate_policy, policy, DEFAULT_POLICY, "policy", warnings)
        refs = _virtual_references(references, warnings)
        engine = VirtualMemoryEngine(size, capacity, refs, algo)
    elif module == SEGMENTATION:
        engine = SegmentationEngine(_segments(segments))
    else:
        raise InvalidConfiguration(f"Unknown module: {module!r}")

    for warning in warnings:
        engine.log.append(f"Warning: {warning}")
    return LoadResult(engine, warnings)
