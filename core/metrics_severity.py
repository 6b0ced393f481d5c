from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

from core.charts import to_vega_spec
from core.colors import count_color, text_color_for
from core.data import observations_frame
from core.filters import FilterCriteria
from core.models import SEVERITIES, Observation, SeverityMatrixRow


def build_severity_matrix(records: Iterable[Observation]) -> List[SeverityMatrixRow]:
    """Chapter x severity counts, one row per chapter, zero cells included."""
    frame = observations_frame(records)
    if frame.empty:
        return []
    matrix = (
        frame.groupby(["chapter", "severity"])
        .size()
        .unstack("severity", fill_value=0)
        .reindex(columns=SEVERITIES, fill_value=0)
        .sort_index()
    )
    return [
        SeverityMatrixRow(chapter=str(chapter), **{sev: int(row[sev]) for sev in SEVERITIES})
        for chapter, row in matrix.iterrows()
    ]


def compute_heatmap(filters: FilterCriteria, records: Iterable[Observation]) -> Dict[str, Any]:
    matrix = build_severity_matrix(records)
    cells = [
        {
            "chapter": row.chapter,
            "severity": sev,
            "count": getattr(row, sev),
            "color": count_color(getattr(row, sev)),
            "text_color": text_color_for(getattr(row, sev)),
        }
        for row in matrix
        for sev in SEVERITIES
    ]
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "chapters": [row.chapter for row in matrix],
        "severities": list(SEVERITIES),
        "rows": [asdict(row) for row in matrix],
        "cells": cells,
        "charts": {},
    }
    if not cells:
        return payload

    base = alt.Chart(pd.DataFrame(cells)).encode(
        x=alt.X("severity:N", title="Severity", sort=SEVERITIES, axis=alt.Axis(orient="top")),
        y=alt.Y("chapter:N", title="Chapter", sort=payload["chapters"]),
    )
    rect = base.mark_rect(stroke="#ffffff").encode(
        color=alt.Color("color:N", scale=None, legend=None),
        tooltip=["chapter", "severity", alt.Tooltip("count:Q", title="Observations")],
    )
    text = base.mark_text(fontWeight="bold").encode(
        text=alt.Text("count:Q"),
        color=alt.Color("text_color:N", scale=None, legend=None),
    )
    heatmap = alt.layer(rect, text).properties(title="Observations by Chapter and Severity", height=max(160, 32 * len(matrix)))
    payload["charts"]["heatmap"] = to_vega_spec(heatmap)
    return payload
