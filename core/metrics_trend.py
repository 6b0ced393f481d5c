from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

from core.charts import STATUS_COLOR_SCALE, to_vega_spec
from core.data import observations_frame
from core.filters import FilterCriteria
from core.models import STATUSES, ChapterMonthlyData, MonthlyCount, Observation


MONTH_LABEL_FORMAT = "%b %Y"


def month_label(period: pd.Period) -> str:
    return period.strftime(MONTH_LABEL_FORMAT)


def monthly_by_status(records: Iterable[Observation]) -> List[MonthlyCount]:
    """One row per (month, status) for every month present, zeros included.

    Months are ordered by their year-month period, not by label.
    """
    frame = observations_frame(records)
    if frame.empty:
        return []
    counts = (
        frame.groupby(["period", "status"])
        .size()
        .unstack("status", fill_value=0)
        .reindex(columns=STATUSES, fill_value=0)
        .sort_index()
    )
    return [
        MonthlyCount(month=month_label(period), period=str(period), status=status, count=int(row[status]))
        for period, row in counts.iterrows()
        for status in STATUSES
    ]


def monthly_by_chapter(records: Iterable[Observation]) -> List[ChapterMonthlyData]:
    frame = observations_frame(records)
    if frame.empty:
        return []
    counts = frame.groupby(["period", "chapter"]).size().sort_index()
    return [
        ChapterMonthlyData(month=month_label(period), period=str(period), chapter=str(chapter), count=int(count))
        for (period, chapter), count in counts.items()
        if count > 0
    ]


def compute_trend(filters: FilterCriteria, records: Iterable[Observation]) -> Dict[str, Any]:
    records = list(records)
    by_status = monthly_by_status(records)
    by_chapter = monthly_by_chapter(records)
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "by_status": [asdict(r) for r in by_status],
        "by_chapter": [asdict(r) for r in by_chapter],
        "charts": {},
    }
    if not by_status:
        return payload

    month_order = list(dict.fromkeys(r.month for r in by_status))
    trend_hover = alt.selection_point(fields=["status"], on="mouseover", empty="all")
    line = (
        alt.Chart(pd.DataFrame(payload["by_status"]))
        .mark_line(point={"filled": True, "size": 60}, interpolate="monotone")
        .encode(
            x=alt.X("month:O", title="Month", sort=month_order, axis=alt.Axis(grid=False)),
            y=alt.Y("count:Q", title="Number of Observations", scale=alt.Scale(domainMin=0), axis=alt.Axis(gridDash=[4, 4])),
            color=alt.Color("status:N", title="Status", scale=STATUS_COLOR_SCALE, sort=STATUSES),
            opacity=alt.condition(trend_hover, alt.value(1), alt.value(0.2)),
            tooltip=["month", "status", alt.Tooltip("count:Q", format=",")],
        )
        .add_params(trend_hover)
        .properties(title="Monthly Observation Trends by Status", height=260)
    )
    payload["charts"]["status_trend"] = to_vega_spec(line)

    chapter_line = (
        alt.Chart(pd.DataFrame(payload["by_chapter"]))
        .mark_line(point=True)
        .encode(
            x=alt.X("month:O", title="Month", sort=month_order),
            y=alt.Y("count:Q", title="Number of Observations"),
            color=alt.Color("chapter:N", title="Chapter"),
            tooltip=["month", "chapter", "count"],
        )
        .properties(title="Monthly Observations by Chapter", height=260)
    )
    payload["charts"]["chapter_trend"] = to_vega_spec(chapter_line)
    return payload
