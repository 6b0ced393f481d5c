from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from core.data import observations_frame
from core.errors import ValidationError
from core.models import Observation, Status, parse_date


DEFAULT_LOOKBACK_MONTHS = 6


@dataclass(frozen=True)
class FilterCriteria:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    chapters: List[str] = field(default_factory=list)
    only_open: bool = False


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_str_list(values: object) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = values.split(",")
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.append(s)
    return out


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def date_bounds(criteria: FilterCriteria) -> Tuple[Optional[date], Optional[date]]:
    """Parsed (start, end) bounds; both or neither must be set."""
    start_missing = _is_blank(criteria.start_date)
    end_missing = _is_blank(criteria.end_date)
    if start_missing and end_missing:
        return None, None
    if start_missing or end_missing:
        raise ValidationError("start_date and end_date must be provided together")
    return parse_date(criteria.start_date), parse_date(criteria.end_date)


def default_date_range(today: Optional[date] = None) -> Tuple[date, date]:
    end = parse_date(today) if today is not None else date.today()
    start = (pd.Timestamp(end) - pd.DateOffset(months=DEFAULT_LOOKBACK_MONTHS)).date()
    return start, end


def default_filters(available_chapters: Optional[Iterable[str]] = None, today: Optional[date] = None) -> FilterCriteria:
    start, end = default_date_range(today)
    return FilterCriteria(
        start_date=start,
        end_date=end,
        chapters=sorted(set(available_chapters or [])),
        only_open=False,
    )


def normalize_filters(
    raw: dict,
    *,
    available_chapters: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> FilterCriteria:
    raw = raw or {}
    start_raw = raw.get("start_date")
    end_raw = raw.get("end_date")
    if _is_blank(start_raw) and _is_blank(end_raw):
        start, end = default_date_range(today)
    else:
        start, end = date_bounds(FilterCriteria(start_date=start_raw, end_date=end_raw))

    chapters = _as_str_list(raw.get("chapters"))
    if not chapters:
        chapters = sorted(set(available_chapters or []))

    return FilterCriteria(
        start_date=start,
        end_date=end,
        chapters=chapters,
        only_open=_as_bool(raw.get("only_open", False)),
    )


def filter_observations(records: Iterable[Observation], criteria: Optional[FilterCriteria] = None) -> List[Observation]:
    """Apply date, chapter and status predicates, in that order.

    Returns a new list holding the same Observation objects; the input is
    left untouched. An empty criteria object is the identity filter.
    """
    records = list(records)
    criteria = criteria or FilterCriteria()
    start, end = date_bounds(criteria)
    frame = observations_frame(records)
    if frame.empty:
        return []

    mask = pd.Series(True, index=frame.index)
    if start is not None and end is not None:
        mask &= frame["date"].between(pd.Timestamp(start), pd.Timestamp(end))

    chapters = _as_str_list(criteria.chapters)
    if chapters:
        mask &= frame["chapter"].isin(chapters)

    if criteria.only_open:
        mask &= frame["status"].eq(Status.OPEN.value)

    return [obs for obs, keep in zip(records, mask.tolist()) if keep]
