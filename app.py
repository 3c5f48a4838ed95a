"""
Memory Management Visualizer — Paging, Segmentation & Virtual Memory

This application lets a learner step through a sequence of memory references
and watch, at each step, whether the access hits or faults and how the
chosen replacement policy changes physical memory. Three modules are offered:
    - Paging with FIFO or LRU page replacement
    - Segmentation with base/limit address translation
    - Virtual memory (demand paging with a page table)

Built with Streamlit for the web interface and Plotly for visualizations.
All simulation logic lives in engine.py; this file only renders it.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import streamlit as st                       # Web application framework
import plotly.graph_objects as go            # Interactive plotting library

from autoplay import Autoplay                # Periodic stepping driver
from config import (                         # Load configuration & defaults
    DEFAULT_CAPACITY,
    DEFAULT_INTERVAL_MS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REFERENCES,
    DEFAULT_SEG_ACCESS,
    DEFAULT_SEGMENTS,
    DEFAULT_VIRTUAL_REFERENCES,
    MIN_INTERVAL_MS,
    MODULES,
    PAGING,
    SEGMENTATION,
    VIRTUAL,
    load_config,
)
from engine import PolicyName, SimulatorError
from utils import (
    format_percent,
    frame_rows,
    get_color,
    page_table_rows,
    segment_rows,
)


# =============================================================================
# CHART BUILDERS
# =============================================================================

def frames_figure(slots, highlight_slot=None, highlight=None, prefix=""):
    """
    Bar chart of the frame set, one bar per slot.

    Args:
        slots (list): Slot contents, None for an empty slot
        highlight_slot (int): Slot touched by the last step, if any
        highlight (str): "hit" or "fault" for the highlighted slot
        prefix (str): Label prefix for occupied slots ("P" for pages)
    """
    fig = go.Figure()
    text = []
    colors = []
    for i, value in enumerate(slots):
        text.append(f"F{i}: " + (f"{prefix}{value}" if value is not None else "Free"))
        colors.append(get_color(value is not None, highlight if i == highlight_slot else None))

    fig.add_trace(go.Bar(
        x=list(range(len(slots))),
        y=[1] * len(slots),
        text=text,
        marker_color=colors,
        hovertext=text,
        hoverinfo="text",
    ))
    fig.update_layout(height=150, showlegend=False, yaxis=dict(showticklabels=False))
    return fig


def timeline_figure(history):
    """Memory access timeline: 1 = hit, 0 = fault, one point per access."""
    fig = go.Figure()
    xs = list(range(1, len(history) + 1))
    fig.add_trace(go.Scatter(
        x=xs,
        y=history,
        mode="lines+markers",
        line=dict(color="#65a8ff", width=2),
        marker=dict(size=10, color=["#00ff55" if v == 1 else "#ff4444" for v in history]),
        hovertext=[f"Access {x}: {'Hit (1)' if v == 1 else 'Fault (0)'}" for x, v in zip(xs, history)],
        hoverinfo="text",
    ))
    fig.update_layout(
        height=260,
        title="Memory Access Timeline (Hits vs Faults)",
        yaxis=dict(tickvals=[0, 1], ticktext=["0 (Fault)", "1 (Hit)"], range=[-0.2, 1.2]),
        xaxis=dict(title="Access #"),
    )
    return fig


def timeline_markup(engine):
    """Reference strip with the cursor and per-index hit/fault marks."""
    cells = []
    for idx, ref in enumerate(engine.queue.refs):
        style = "padding:4px 8px;margin:2px;border-radius:4px;display:inline-block;"
        mark = engine.marks.get(idx)
        if mark == "fault":
            style += "background:#ff6b6b55;"
        elif mark == "hit":
            style += "background:#4cc2ff55;"
        if idx == engine.queue.cursor:
            style += "border:2px solid #65a8ff;"
        cells.append(f"<span style='{style}'>{ref}</span>")
    return "".join(cells) or "<i>No references loaded</i>"


# =============================================================================
# SESSION STATE
# =============================================================================

st.set_page_config(page_title="Memory Management Visualizer", layout="wide")

page = st.sidebar.radio("Choose View", ["Simulator", "Concepts"])

st.title("Memory Management Visualizer — Paging, Segmentation & Virtual Memory")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if page == "Concepts":
    st.header("Operating System Concepts Used in This Project")
    st.markdown(
        """
        ### **1. Paging & Page Replacement**
        - Physical memory is a fixed number of *frames*.
        - A reference already in a frame is a **hit**; otherwise it is a **fault**.
        - When every frame is occupied the policy picks a **victim**:
            - **FIFO** replaces the frame filled earliest (a cursor walks the frames in order).
            - **LRU** replaces the frame whose last access is the oldest.

        ### **2. Segmentation**
        - Memory is split into named segments, each with a *base* and an inclusive *limit*.
        - `segment:offset` translates to `base + offset` when `0 ≤ offset ≤ limit`.
        - Unknown segments and out-of-range offsets raise a **segment fault**.

        ### **3. Virtual Memory**
        - A logical address splits into `page = address // page size` and `offset = address % page size`.
        - The **page table** maps each page to a frame, or `-1` once evicted.
        - On a fault with no free frame, the victim's page is unmapped and the new page takes its frame.
        """
    )
    st.stop()

# -----------------------------------------------------------------------------
# SIDEBAR - Simulation Settings
# -----------------------------------------------------------------------------

st.sidebar.header("Simulation Settings")

module = st.sidebar.selectbox("Module", options=list(MODULES))

# Only the inputs of the selected module are shown
if module == SEGMENTATION:
    segments_text = st.sidebar.text_area("Segments (name:base:limit, ...)", value=DEFAULT_SEGMENTS)
    seg_access = st.sidebar.text_input("Access (segment:offset)", value=DEFAULT_SEG_ACCESS)
else:
    policy = st.sidebar.selectbox("Replacement Policy", options=[PolicyName.FIFO, PolicyName.LRU])
    # Text inputs so invalid values reach the loader and fall back to defaults
    frame_count = st.sidebar.text_input("Frames", value=str(DEFAULT_CAPACITY))
    if module == PAGING:
        references = st.sidebar.text_area("Reference string", value=DEFAULT_REFERENCES)
    else:
        page_size = st.sidebar.text_input("Page size", value=str(DEFAULT_PAGE_SIZE))
        references = st.sidebar.text_area("Logical addresses", value=DEFAULT_VIRTUAL_REFERENCES)

    interval_ms = st.sidebar.number_input(
        "Autoplay interval (ms)",
        min_value=MIN_INTERVAL_MS,
        max_value=5000,
        value=DEFAULT_INTERVAL_MS,
        step=50,
    )


def stop_player():
    player = st.session_state.get("player")
    if player is not None:
        player.stop()


def load_engine():
    """Build a fresh engine from the sidebar and store it in session state."""
    stop_player()
    if module == PAGING:
        result = load_config(PAGING, frame_count=frame_count, references=references, policy=policy)
    elif module == VIRTUAL:
        result = load_config(VIRTUAL, frame_count=frame_count, references=references,
                             policy=policy, page_size=page_size)
    else:
        result = load_config(SEGMENTATION, segments=segments_text)
    st.session_state.engine = result.engine
    st.session_state.module = module
    st.session_state.player = None
    st.session_state.last = None
    for warning in result.warnings:
        st.sidebar.warning(warning)


if "engine" not in st.session_state or st.session_state.get("module") != module:
    load_engine()

if st.sidebar.button("Load"):
    load_engine()
    st.sidebar.success("Configuration loaded")

engine = st.session_state.engine

if st.sidebar.button("Reset Simulation"):
    stop_player()
    engine.reset()
    st.session_state.last = None
    st.sidebar.success("Simulation reset")

# Paging and virtual memory share one autoplay driver per loaded engine
player = None
if module != SEGMENTATION:
    player = st.session_state.get("player")
    if player is None or player.interval_ms != max(MIN_INTERVAL_MS, int(interval_ms)):
        stop_player()
        player = Autoplay(engine, interval_ms=interval_ms)
        st.session_state.player = player

# =============================================================================
# MAIN CONTENT AREA - Two Column Layout
# =============================================================================

col1, col2 = st.columns([1, 2])

with col1:
    st.subheader("Controls")

    running = player is not None and player.running

    if st.button("Step Once", disabled=running):
        try:
            if module == SEGMENTATION:
                st.session_state.last = engine.access(seg_access)
            else:
                st.session_state.last = engine.step()
        except SimulatorError as e:
            st.sidebar.error(str(e))

    if module == SEGMENTATION:
        st.caption("Segmentation translates one access per step.")
    elif st.button("Stop" if running else "Run"):
        player.toggle()
        st.rerun()

    st.download_button(
        "Download log",
        data=engine.log.export(),
        file_name="memory-visualizer-log.txt",
        mime="text/plain",
    )


def describe(last):
    """Show the outcome of the most recent step."""
    if last is None:
        return
    if last.exhausted:
        st.info("All references processed.")
    elif module == SEGMENTATION:
        if last.is_hit:
            st.success(f"{last.reference}:{last.offset} → physical address {last.address}")
        elif last.is_fault:
            st.error(f"Segment fault ({last.error})")
    else:
        outcome = "HIT" if last.is_hit else "FAULT"
        evicted = f", evicted {last.evicted}" if last.evicted is not None else ""
        st.success(f"Accessed {last.reference} -> {outcome} (frame={last.slot}{evicted})")


def show_stats():
    st.subheader("Statistics")
    stats = engine.stats()
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Processed", stats["processed"])
    m2.metric("Faults", stats["faults"])
    m3.metric("Hit Rate", format_percent(stats["hit_rate"]))
    m4.metric("Fault Rate", format_percent(stats["fault_rate"]))
    if module == SEGMENTATION:
        st.caption(f"Segments: {len(engine.segments)}")
    else:
        st.caption(f"Frames: {engine.capacity} · Total refs: {stats['total_refs']} · Hits: {stats['hits']}")


def show_log():
    st.subheader("Event Log")
    for ev in engine.log.tail(20):
        st.write(ev)


# -----------------------------------------------------------------------------
# SEGMENTATION VIEW
# -----------------------------------------------------------------------------

if module == SEGMENTATION:
    with col1:
        describe(st.session_state.last)
        show_log()
    with col2:
        st.subheader("Segments / Memory Map")
        rows = segment_rows((s.name, s.base, s.limit) for s in engine.segments)
        if len(rows) == 0:
            st.write("No segments defined")
        else:
            st.table(rows)
        show_stats()

# -----------------------------------------------------------------------------
# PAGING / VIRTUAL MEMORY VIEW
# -----------------------------------------------------------------------------

else:
    live = player.running

    # While autoplay runs on its thread, this fragment redraws every interval
    @st.fragment(run_every=player.interval if live else None)
    def live_view():
        if live and not player.running:
            # Autoplay stopped itself; rerun the whole app to restore the controls
            st.rerun()
        last = player.last if live else st.session_state.last
        if live:
            st.session_state.last = last

        highlight = None
        slot = None
        if last is not None and not last.exhausted:
            slot = last.slot
            highlight = "hit" if last.is_hit else "fault"

        describe(last)
        st.subheader("Frames (physical memory)" if module == PAGING else "Physical Frames (for pages)")
        st.plotly_chart(
            frames_figure(engine.frames.slots, slot, highlight, "P" if module == VIRTUAL else ""),
            use_container_width=True,
        )
        st.markdown(timeline_markup(engine), unsafe_allow_html=True)
        st.plotly_chart(timeline_figure(engine.state.history), use_container_width=True)

        if module == PAGING:
            st.subheader("Frame Table")
            stamps = engine.stamps if engine.policy.name == PolicyName.LRU else None
            st.table(frame_rows(engine.frames.slots, stamps))
        else:
            st.subheader("Page Table (snapshot)")
            if len(engine.page_table) == 0:
                st.write("Page table empty — no pages referenced yet")
            else:
                st.table(page_table_rows(engine.page_table))

        if engine.policy.name == PolicyName.FIFO:
            st.write(f"FIFO cursor → frame {engine.fifo_cursor}")

        show_stats()
        show_log()

    with col2:
        live_view()
        st.download_button(
            "Download graph",
            data=timeline_figure(engine.state.history).to_html(),
            file_name="memory-access-timeline.html",
            mime="text/html",
        )

# =============================================================================
# FOOTER - Usage Tips and Examples
# =============================================================================

st.markdown("---")
st.markdown(
    "**Usage tips**:\n"
    "- Pick a module, edit the inputs and press **Load**.\n"
    "- **Step Once** resolves one reference; **Run** plays the rest and becomes **Stop** while running.\n"
    "- **Reset Simulation** clears counters and frames but keeps the loaded configuration."
)
st.markdown(
    "**Instructor examples**:\n"
    "1) FIFO, 3 frames, `1,2,3,4,1,2,5`: every access faults.\n"
    "2) LRU, 2 frames, `1,2,1,3`: the hit on 1 saves it, 2 is evicted.\n"
    "3) Virtual, page size 100, 2 frames, `50,150,250,50`: page 0 is evicted and faults again."
)
