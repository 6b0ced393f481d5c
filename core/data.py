from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from core.errors import SourceUnavailable, ValidationError
from core.models import Observation, parse_date, parse_severity, parse_status


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
OBSERVATIONS_FILENAME = "observations.json"

FRAME_COLUMNS = ["id", "date", "chapter", "severity", "status", "description"]


def get_data_dir() -> Path:
    return Path(os.environ.get("AUDIT_DASHBOARD_DATA_DIR") or DATA_DIR)


def get_source_file() -> Path:
    return get_data_dir() / (os.environ.get("AUDIT_DASHBOARD_FILE") or OBSERVATIONS_FILENAME)


def file_signature(path: Path) -> Tuple[str, float]:
    try:
        return str(path), path.stat().st_mtime
    except OSError as exc:
        raise SourceUnavailable(f"Observation file not found: {path}") from exc


def read_observation_table(path: Path) -> pd.DataFrame:
    """Read the raw observation table (JSON list of records or CSV) into a frame."""
    try:
        if path.suffix.lower() == ".csv":
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    except (OSError, ValueError) as exc:
        raise SourceUnavailable(f"Failed to read observations from {path.name}: {exc}") from exc


def observations_from_frame(df: pd.DataFrame) -> List[Observation]:
    if df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    observations: List[Observation] = []
    for idx, row in enumerate(df.to_dict(orient="records"), start=1):
        try:
            observations.append(Observation.from_dict(row))
        except ValidationError as exc:
            raise ValidationError(f"Row {idx}: {exc}") from exc
    seen = set()
    for obs in observations:
        if obs.id in seen:
            raise ValidationError(f"duplicate observation id {obs.id}")
        seen.add(obs.id)
    return observations


@lru_cache(maxsize=4)
def _load_observations_cached(signature: Tuple[str, float]) -> Tuple[Observation, ...]:
    path = Path(signature[0])
    logger.debug("Loading observations from %s", path)
    observations = observations_from_frame(read_observation_table(path))
    logger.info("Loaded %d observations from %s", len(observations), path.name)
    return tuple(observations)


def load_observations(path: Optional[Path] = None) -> List[Observation]:
    source = Path(path) if path is not None else get_source_file()
    return list(_load_observations_cached(file_signature(source)))


def get_chapters(records: Iterable[Observation]) -> List[str]:
    return sorted({obs.chapter for obs in records})


def observations_frame(records: Iterable[Observation]) -> pd.DataFrame:
    """Validated frame view of the records; every aggregator works on this.

    Adds a monthly ``period`` column. Any record with an unknown severity,
    status or an unparsable date fails the whole call.
    """
    rows = []
    for obs in records:
        try:
            rows.append(
                {
                    "id": obs.id,
                    "date": parse_date(obs.date),
                    "chapter": obs.chapter,
                    "severity": parse_severity(obs.severity).value,
                    "status": parse_status(obs.status).value,
                    "description": obs.description,
                }
            )
        except ValidationError as exc:
            raise ValidationError(f"observation {obs.id}: {exc}") from exc
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["period"] = df["date"].dt.to_period("M")
    return df


def records_to_frame(records: Iterable[Observation]) -> pd.DataFrame:
    """Flat export frame (ISO dates, no period column)."""
    df = pd.DataFrame([obs.as_dict() for obs in records], columns=FRAME_COLUMNS)
    return df
