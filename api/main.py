from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ChaptersResponse, DashboardFiltersModel, ObservationModel
from core.data import get_chapters, records_to_frame
from core.errors import SourceUnavailable, ValidationError
from core.filters import FilterCriteria, filter_observations, normalize_filters
from core.metrics_chapters import compute_distribution, compute_progress
from core.metrics_overview import MetricsSummarizer, overview_payload
from core.metrics_severity import compute_heatmap
from core.metrics_trend import compute_trend
from core.models import Observation
from core.source import ObservationSource


app = FastAPI(title="Audit Observations Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4200", "http://127.0.0.1:4200", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

source = ObservationSource()

# Previous-snapshot cell for the overview deltas; lives as long as the process.
summarizer = MetricsSummarizer()


def _filters_from_model(model: DashboardFiltersModel, *, available_chapters: List[str]) -> FilterCriteria:
    raw = model.model_dump()
    return normalize_filters(raw, available_chapters=available_chapters)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _handle(name: str, fn: Callable[[], object]) -> JSONResponse:
    try:
        return _json(fn())
    except ValidationError as exc:
        logger.warning("%s rejected: %s", name, exc)
        return _error(exc, 422)
    except SourceUnavailable as exc:
        logger.error("%s failed, observation source unavailable: %s", name, exc)
        return JSONResponse(
            status_code=503,
            content={
                "error": "Failed to load observations. Please try again later.",
                "detail": str(exc),
                "type": type(exc).__name__,
            },
        )
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc, 500)


def _filtered(filters: DashboardFiltersModel) -> tuple[FilterCriteria, List[Observation]]:
    records = source.get_all_records()
    f = _filters_from_model(filters, available_chapters=get_chapters(records))
    return f, filter_observations(records, f)


@app.get("/observations", response_model=List[ObservationModel])
def observations():
    return _handle("observations", lambda: [obs.as_dict() for obs in source.get_all_records()])


@app.get("/chapters", response_model=ChaptersResponse)
def chapters():
    return _handle("chapters", lambda: {"chapters": source.get_chapters()})


@app.get("/observations/filtered", response_model=List[ObservationModel])
def observations_filtered(
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    chapters: str = Query(default=""),
    only_open: bool = Query(default=False),
):
    def run() -> List[Dict[str, object]]:
        criteria = FilterCriteria(
            start_date=start_date,
            end_date=end_date,
            chapters=[c.strip() for c in chapters.split(",") if c.strip()],
            only_open=only_open,
        )
        return [obs.as_dict() for obs in source.get_filtered_records(criteria)]

    return _handle("observations_filtered", run)


@app.post("/overview")
def overview(filters: DashboardFiltersModel):
    def run() -> Dict[str, object]:
        f, records = _filtered(filters)
        snapshot, changes = summarizer.update(records)
        return overview_payload(f, snapshot, changes)

    return _handle("overview", run)


@app.post("/distribution")
def distribution(filters: DashboardFiltersModel):
    return _handle("distribution", lambda: compute_distribution(*_filtered(filters)))


@app.post("/progress")
def progress(filters: DashboardFiltersModel):
    return _handle("progress", lambda: compute_progress(*_filtered(filters)))


@app.post("/heatmap")
def heatmap(filters: DashboardFiltersModel):
    return _handle("heatmap", lambda: compute_heatmap(*_filtered(filters)))


@app.post("/trend")
def trend(filters: DashboardFiltersModel):
    return _handle("trend", lambda: compute_trend(*_filtered(filters)))


@app.post("/export/{page}")
def export_page(page: str, filters: DashboardFiltersModel):
    try:
        f, records = _filtered(filters)
    except ValidationError as exc:
        return _error(exc, 422)
    except SourceUnavailable as exc:
        return _error(exc, 503)

    filename = f"{page}.csv"
    if page == "distribution":
        export_df = pd.DataFrame(compute_distribution(f, records)["rows"])
    elif page == "progress":
        export_df = pd.DataFrame(compute_progress(f, records)["rows"])
    elif page == "heatmap":
        export_df = pd.DataFrame(compute_heatmap(f, records)["rows"])
    elif page == "trend":
        export_df = pd.DataFrame(compute_trend(f, records)["by_status"])
    else:
        export_df = records_to_frame(records)
        filename = "observations.csv"

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
