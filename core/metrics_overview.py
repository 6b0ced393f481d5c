from __future__ import annotations

import threading
from dataclasses import asdict
from typing import Any, Dict, Iterable, Optional, Tuple

from core.data import observations_frame
from core.filters import FilterCriteria
from core.models import MetricChange, MetricsSnapshot, Observation, Status, compliance_rate


METRICS = ("total", "open", "complied", "compliance_rate")

# Metrics where a rise is an improvement; for "open" a fall is.
_HIGHER_IS_BETTER = {"complied", "compliance_rate"}
_LOWER_IS_BETTER = {"open"}


def compute_snapshot(records: Iterable[Observation]) -> MetricsSnapshot:
    frame = observations_frame(records)
    total = int(len(frame))
    open_count = int(frame["status"].eq(Status.OPEN.value).sum())
    complied = int(frame["status"].eq(Status.COMPLIED.value).sum())
    return MetricsSnapshot(
        total=total,
        open=open_count,
        complied=complied,
        compliance_rate=compliance_rate(complied, total),
    )


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return ((current - previous) / previous) * 100


def is_positive_change(metric: str, change: float) -> bool:
    """Display hint for delta color-coding."""
    if metric in _HIGHER_IS_BETTER:
        return change >= 0
    if metric in _LOWER_IS_BETTER:
        return change <= 0
    return change >= 0


def compare_snapshots(current: MetricsSnapshot, previous: MetricsSnapshot) -> Dict[str, MetricChange]:
    changes: Dict[str, MetricChange] = {}
    for metric in METRICS:
        cur = getattr(current, metric)
        prev = getattr(previous, metric)
        change = percent_change(cur, prev)
        changes[metric] = MetricChange(
            metric=metric,
            current=cur,
            previous=prev,
            change=change,
            positive=is_positive_change(metric, change),
        )
    return changes


def summarize(
    records: Iterable[Observation],
    previous: Optional[MetricsSnapshot] = None,
) -> Tuple[MetricsSnapshot, Dict[str, MetricChange]]:
    """Compute the new snapshot and its single-step change against ``previous``.

    Callers keep the returned snapshot and pass it back as ``previous`` on the
    next call. ``None`` stands for the all-zero state before the first load.
    """
    previous = previous or MetricsSnapshot()
    current = compute_snapshot(records)
    return current, compare_snapshots(current, previous)


def snapshot_step_key(criteria: FilterCriteria, records: Iterable[Observation]) -> Tuple[Any, ...]:
    """Identity of one summarize step: the applied filters plus the records they kept.

    A host that reruns without a filter change sees the same key and should
    not advance the previous snapshot.
    """
    return (
        criteria.start_date,
        criteria.end_date,
        tuple(criteria.chapters),
        criteria.only_open,
        tuple(obs.id for obs in records),
    )


class MetricsSummarizer:
    """Process-lifetime holder of the last snapshot, safe to share across threads."""

    def __init__(self, initial: Optional[MetricsSnapshot] = None):
        self._lock = threading.Lock()
        self._current = initial or MetricsSnapshot()

    @property
    def current(self) -> MetricsSnapshot:
        with self._lock:
            return self._current

    def update(self, records: Iterable[Observation]) -> Tuple[MetricsSnapshot, Dict[str, MetricChange]]:
        records = list(records)
        with self._lock:
            snapshot, changes = summarize(records, self._current)
            self._current = snapshot
        return snapshot, changes

    def reset(self) -> None:
        with self._lock:
            self._current = MetricsSnapshot()


def overview_payload(
    filters: FilterCriteria,
    snapshot: MetricsSnapshot,
    changes: Dict[str, MetricChange],
) -> Dict[str, Any]:
    return {
        "filters": asdict(filters),
        "kpis": asdict(snapshot),
        "previous": {metric: change.previous for metric, change in changes.items()},
        "changes": {metric: asdict(change) for metric, change in changes.items()},
    }


def compute_overview(
    filters: FilterCriteria,
    records: Iterable[Observation],
    previous: Optional[MetricsSnapshot] = None,
) -> Dict[str, Any]:
    snapshot, changes = summarize(records, previous)
    return overview_payload(filters, snapshot, changes)
