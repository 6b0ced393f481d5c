from contextlib import contextmanager
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from core.data import get_chapters, load_observations, records_to_frame
from core.errors import SourceUnavailable, ValidationError
from core.filters import FilterCriteria, default_filters, filter_observations
from core.metrics_chapters import compute_distribution, compute_progress
from core.metrics_overview import snapshot_step_key, summarize
from core.metrics_severity import compute_heatmap
from core.metrics_trend import compute_trend
from core.models import MetricChange, MetricsSnapshot


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(criteria: FilterCriteria, all_chapters: List[str]) -> str:
    date_chip = f"Dates: {criteria.start_date:%d %b %Y} – {criteria.end_date:%d %b %Y}"
    chapter_chip = (
        "Chapters: All"
        if not criteria.chapters or set(criteria.chapters) == set(all_chapters)
        else f"Chapters: {', '.join(criteria.chapters)}"
    )
    status_chip = "Status: Open only" if criteria.only_open else "Status: All"
    return "".join(f"<span class='chip'>{txt}</span>" for txt in [date_chip, chapter_chip, status_chip])


def render_metric_tiles(snapshot: MetricsSnapshot, changes: Dict[str, MetricChange]):
    tiles = [
        ("Total Observations", "total", f"{snapshot.total:,}"),
        ("Open", "open", f"{snapshot.open:,}"),
        ("Complied", "complied", f"{snapshot.complied:,}"),
        ("Compliance Rate", "compliance_rate", f"{snapshot.compliance_rate:.1f}%"),
    ]
    cols = st.columns(len(tiles))
    for col, (label, metric, value) in zip(cols, tiles):
        change = changes[metric]
        # st.metric colors by sign; flip it when a fall is the good direction.
        improving_when_up = (change.change >= 0) == change.positive
        col.metric(
            label,
            value,
            delta=f"{change.change:+.1f}%",
            delta_color="normal" if improving_when_up else "inverse",
        )


def render_chart(payload: Dict, chart_key: str, empty_message: str):
    spec: Optional[Dict] = payload.get("charts", {}).get(chart_key)
    if not spec:
        st.info(empty_message)
        return
    st.vega_lite_chart(spec, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Audit Observations Dashboard", layout="wide")
inject_base_styles()
st.title("Audit Observations Dashboard")
st.caption("Chapter distribution, compliance trends and severity hot spots for audit findings.")

try:
    observations = load_observations()
except (SourceUnavailable, ValidationError) as exc:
    st.error(f"Failed to load observations. Please try again later. ({exc})")
    st.stop()

all_chapters = get_chapters(observations)
defaults = default_filters(all_chapters)

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filters")
    if st.button("Reset filters"):
        for key in ["filter_dates", "filter_chapters", "filter_only_open"]:
            st.session_state.pop(key, None)
    date_range = st.date_input(
        "Date range",
        value=(defaults.start_date, defaults.end_date),
        key="filter_dates",
    )
    selected_chapters = st.multiselect("Chapters", options=all_chapters, default=all_chapters, key="filter_chapters")
    only_open = st.checkbox("Only open observations", value=False, key="filter_only_open")

if isinstance(date_range, (list, tuple)) and len(date_range) == 2:
    start_date, end_date = date_range
else:
    # date_input returns a single date while the user is still picking the range end
    start_date, end_date = defaults.start_date, defaults.end_date

criteria = FilterCriteria(
    start_date=start_date,
    end_date=end_date,
    chapters=list(selected_chapters),
    only_open=only_open,
)
filtered = filter_observations(observations, criteria)

# Each filter change is one step; plain reruns keep the previous snapshot.
metrics_key = snapshot_step_key(criteria, filtered)
if st.session_state.get("_metrics_key") != metrics_key:
    snapshot, changes = summarize(filtered, st.session_state.get("metrics_snapshot"))
    st.session_state["metrics_snapshot"] = snapshot
    st.session_state["metrics_changes"] = changes
    st.session_state["_metrics_key"] = metrics_key

st.markdown(f"<div class='chip-row'>{format_filter_summary(criteria, all_chapters)}</div>", unsafe_allow_html=True)

with card("Key Metrics"):
    render_metric_tiles(st.session_state["metrics_snapshot"], st.session_state["metrics_changes"])

top_cols = st.columns(2)
with top_cols[0]:
    with card("Observations by Chapter"):
        render_chart(compute_distribution(criteria, filtered), "distribution", "No observations for the selected filters.")
with top_cols[1]:
    with card("Status Trend"):
        render_chart(compute_trend(criteria, filtered), "status_trend", "Not enough data for trend.")

bottom_cols = st.columns(2)
with bottom_cols[0]:
    with card("Severity Heatmap"):
        render_chart(compute_heatmap(criteria, filtered), "heatmap", "No observations for the selected filters.")
with bottom_cols[1]:
    with card("Chapter Compliance Progress"):
        render_chart(compute_progress(criteria, filtered), "progress", "No observations for the selected filters.")

with st.expander("Filtered observations"):
    export_df: pd.DataFrame = records_to_frame(filtered)
    st.dataframe(export_df, hide_index=True, use_container_width=True)
    st.download_button(
        "Export CSV",
        data=export_df.to_csv(index=False).encode("utf-8"),
        file_name="observations.csv",
        mime="text/csv",
    )
