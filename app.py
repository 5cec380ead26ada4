import logging
from typing import Any, Dict, List

import streamlit as st

from vulndash.dashboard import CHART_SLOTS, KPI_SLOTS, render_state
from vulndash.data import (
    DATASET_FILENAME,
    DatasetLoadError,
    DatasetParseError,
    load_dataset,
    load_uploaded,
)
from vulndash.filters import ALL_SENTINEL, FilterSelection, scan_type_label
from vulndash.metrics_overview import compute_header_summary
from vulndash.state import DashboardState

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

STATE_KEY = "dashboard_state"
LOADED_KEY = "dataset_loaded"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .badge-row {display: flex;flex-wrap: wrap;gap: 6px;margin: 4px 0 12px;}
        .badge {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 6px;}
        .chart-empty {display: flex;align-items: center;justify-content: center;min-height: 220px;
                      color: #94a3b8;font-size: 0.9rem;border: 1px dashed #e2e8f0;border-radius: 12px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_header_summary(summary: Dict[str, Any]) -> str:
    chips = [
        f"{summary['issues']} issues",
        f"{summary['orgs']} orgs",
        f"{summary['projects']} projects",
    ]
    if summary["first_month"] and summary["last_month"]:
        chips.append(f"{summary['first_month']} to {summary['last_month']}")
    return "".join(f"<span class='badge'>{txt}</span>" for txt in chips)


class StreamlitPort:
    """RenderPort writing into pre-laid-out Streamlit placeholders."""

    def __init__(self, slots: Dict[str, Any]):
        self.slots = slots

    def render(self, chart_id: str, spec: Dict[str, Any]) -> None:
        self.slots[chart_id].vega_lite_chart(spec)

    def render_empty(self, chart_id: str, message: str) -> None:
        self.slots[chart_id].markdown(f"<div class='chart-empty'>{message}</div>", unsafe_allow_html=True)

    def set_text(self, slot_id: str, value: str) -> None:
        self.slots[slot_id].metric(KPI_SLOTS[slot_id], value)


# ---------- Data loading ----------
def get_state() -> DashboardState:
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = DashboardState()
        st.session_state[LOADED_KEY] = False
    return st.session_state[STATE_KEY]


def auto_load(state: DashboardState) -> bool:
    try:
        records = load_dataset()
    except DatasetLoadError as exc:
        logger.warning("Auto-load failed: %s", exc)
        return False
    except DatasetParseError as exc:
        # Fatal to this attempt only; the upload fallback takes over.
        logger.exception("Dataset parse failed")
        st.error(str(exc))
        return False
    state.load(records)
    return True


def upload_fallback(state: DashboardState) -> bool:
    st.info(f"Could not load {DATASET_FILENAME} automatically. Select the CSV file to continue.")
    uploaded = st.file_uploader("Vulnerability dataset (CSV)", type=["csv"])
    if uploaded is None:
        return False
    try:
        records = load_uploaded(uploaded.getvalue())
    except DatasetParseError as exc:
        logger.exception("Uploaded dataset parse failed")
        st.error(str(exc))
        return False
    state.load(records)
    return True


# ---------- Filters ----------
def render_chip_group(title: str, options: List[str], selection: FilterSelection, on_toggle, key: str, labels=None):
    st.markdown(f"### {title}")
    labels = labels or {}
    values = [ALL_SENTINEL] + options
    for value in values:
        label = "All" if value == ALL_SENTINEL else labels.get(value, value or "(blank)")
        st.button(
            label,
            key=f"{key}-{value}",
            type="primary" if selection.is_active(value) else "secondary",
            on_click=on_toggle,
            args=(value,),
            use_container_width=True,
        )


# ---------- UI setup ----------
st.set_page_config(page_title="Vulnerability Dashboard", layout="wide")
inject_base_styles()

state = get_state()
if not st.session_state[LOADED_KEY]:
    if not (auto_load(state) or upload_fallback(state)):
        st.stop()
    st.session_state[LOADED_KEY] = True

st.markdown(
    "<div class='app-top-bar'><div class='page-title'>Vulnerability Dashboard</div></div>",
    unsafe_allow_html=True,
)
st.markdown(f"<div class='badge-row'>{format_header_summary(compute_header_summary(state.records))}</div>", unsafe_allow_html=True)

with st.sidebar:
    render_chip_group("Organization", state.org_options, state.filters.orgs, state.toggle_org, "org")
    st.markdown("---")
    render_chip_group(
        "Scan Type",
        state.scan_type_options,
        state.filters.scan_types,
        state.toggle_scan_type,
        "scan",
        labels={s: scan_type_label(s) for s in state.scan_type_options},
    )
    st.markdown("---")
    st.button("Reset filters", on_click=state.reset)

slots: Dict[str, Any] = {}
for column, slot_id in zip(st.columns(len(KPI_SLOTS)), KPI_SLOTS):
    slots[slot_id] = column.empty()

for i in range(0, len(CHART_SLOTS), 2):
    for column, chart_slot in zip(st.columns(2), CHART_SLOTS[i : i + 2]):
        with column:
            st.markdown(f"<div class='card-title'>{chart_slot.title}</div>", unsafe_allow_html=True)
            slots[chart_slot.chart_id] = st.empty()

render_state(StreamlitPort(slots), state)
