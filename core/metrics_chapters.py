from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

from core.charts import STATUS_COLOR_SCALE, to_vega_spec
from core.colors import lighten, rate_color
from core.data import observations_frame
from core.filters import FilterCriteria
from core.models import STATUSES, ChapterStats, Observation, Status, compliance_rate


def aggregate_by_chapter(records: Iterable[Observation]) -> List[ChapterStats]:
    frame = observations_frame(records)
    if frame.empty:
        return []
    counts = (
        frame.groupby(["chapter", "status"])
        .size()
        .unstack("status", fill_value=0)
        .reindex(columns=STATUSES, fill_value=0)
    )
    stats: List[ChapterStats] = []
    for chapter, row in counts.iterrows():
        open_count = int(row[Status.OPEN.value])
        complied = int(row[Status.COMPLIED.value])
        total = open_count + complied
        stats.append(
            ChapterStats(
                chapter=str(chapter),
                total=total,
                open=open_count,
                complied=complied,
                compliance_rate=compliance_rate(complied, total),
            )
        )
    return stats


def sort_by_total(stats: Iterable[ChapterStats]) -> List[ChapterStats]:
    return sorted(stats, key=lambda s: (-s.total, s.chapter))


def sort_by_rate(stats: Iterable[ChapterStats]) -> List[ChapterStats]:
    return sorted(stats, key=lambda s: (s.compliance_rate, s.chapter))


def compute_distribution(filters: FilterCriteria, records: Iterable[Observation]) -> Dict[str, Any]:
    ordered = sort_by_total(aggregate_by_chapter(records))
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "rows": [asdict(s) for s in ordered],
        "charts": {},
    }
    if not ordered:
        return payload

    chapter_order = [s.chapter for s in ordered]
    long_df = pd.DataFrame(
        [
            {"chapter": s.chapter, "status": status, "count": getattr(s, status.lower())}
            for s in ordered
            for status in STATUSES
        ]
    )
    hover = alt.selection_point(fields=["status"], on="mouseover", empty="all")
    bars = (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("chapter:N", title="Chapter", sort=chapter_order, axis=alt.Axis(labelAngle=-30)),
            y=alt.Y("count:Q", title="Number of Observations", scale=alt.Scale(domainMin=0)),
            color=alt.Color("status:N", title="Status", scale=STATUS_COLOR_SCALE, sort=STATUSES),
            order=alt.Order("status_rank:Q"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=["chapter", "status", alt.Tooltip("count:Q", format=",")],
        )
        .transform_calculate(status_rank=f"datum.status == '{Status.OPEN.value}' ? 0 : 1")
        .add_params(hover)
        .properties(title="Distribution of Observations by Chapter", height=300)
    )
    payload["charts"]["distribution"] = to_vega_spec(bars)
    return payload


def compute_progress(filters: FilterCriteria, records: Iterable[Observation]) -> Dict[str, Any]:
    ordered = sort_by_rate(aggregate_by_chapter(records))
    rows = []
    for s in ordered:
        color = rate_color(s.compliance_rate)
        rows.append({**asdict(s), "color": color, "hover_color": lighten(color, 10)})

    payload: Dict[str, Any] = {"filters": asdict(filters), "rows": rows, "charts": {}}
    if not rows:
        return payload

    df = pd.DataFrame(rows)
    bars = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("compliance_rate:Q", title="Compliance Rate (%)", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("chapter:N", title="Chapter", sort=[r["chapter"] for r in rows]),
            color=alt.Color("color:N", scale=None, legend=None),
            tooltip=[
                "chapter",
                alt.Tooltip("compliance_rate:Q", title="Compliance Rate", format=".1f"),
                alt.Tooltip("total:Q", title="Total Observations"),
                alt.Tooltip("open:Q", title="Open"),
                alt.Tooltip("complied:Q", title="Complied"),
            ],
        )
        .properties(title="Chapter Compliance Progress", height=max(160, 28 * len(rows)))
    )
    payload["charts"]["progress"] = to_vega_spec(bars)
    return payload
