# utils.py

import math
import re


def get_color(occupied, highlight=None):
    """Return a color for a frame slot ("fault" / "hit" highlight wins)."""
    if highlight == "fault":
        return "#ff6b6b"
    if highlight == "hit":
        return "#4cc2ff"
    return "lightgreen" if occupied else "lightgray"


def parse_number(token):
    """int or float for numeric tokens, None otherwise."""
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        return None
    if math.isnan(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def parse_refs(raw):
    """
    Split a reference string on commas, spaces and tabs.

    Numeric tokens become numbers, anything else is kept as a string key.
    """
    if not raw:
        return []
    refs = []
    for token in re.split(r"[,\s]+", raw):
        token = token.strip()
        if not token:
            continue
        number = parse_number(token)
        refs.append(token if number is None else number)
    return refs


def parse_segments(raw):
    """
    Parse ``name:base:limit`` entries separated by commas.

    Entries without a name or with a non-integer base/limit are dropped.
    """
    segments = []
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = [p.strip() for p in entry.split(":")]
        if len(parts) != 3 or not parts[0]:
            continue
        base = parse_number(parts[1])
        limit = parse_number(parts[2])
        if not isinstance(base, int) or not isinstance(limit, int):
            continue
        segments.append((parts[0], base, limit))
    return segments


def parse_seg_address(raw):
    """
    Parse a ``name:offset`` access.

    Returns (name, offset) with offset None when it is not an integer, or
    None when the input is blank.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(":")]
    name = parts[0]
    offset = parts[1] if len(parts) > 1 else ""
    number = parse_number(offset) if offset else None
    if not isinstance(number, int):
        number = None
    return name, number


# -----------------------------
# Table rows
# -----------------------------
def frame_rows(slots, stamps=None):
    """Rows for the frame table; empty slots show "-"."""
    rows = []
    for i, value in enumerate(slots):
        row = {"frame": i, "value": "-" if value is None else value}
        if stamps is not None:
            row["last_used"] = stamps[i]
        rows.append(row)
    return rows


def page_table_rows(page_table):
    """Rows for the page table; unmapped pages show frame -1."""
    return [
        {"page": page, "valid": frame is not None, "frame": -1 if frame is None else frame}
        for page, frame in sorted(page_table.items())
    ]


def segment_rows(segments):
    return [{"segment": name, "base": base, "limit": limit} for name, base, limit in segments]


def format_percent(rate):
    return f"{rate * 100:.1f}%"
