from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping

from core.errors import ValidationError


# Slash dates are month-first only; no day-first fallback.
_DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
]


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Status(str, Enum):
    OPEN = "Open"
    COMPLIED = "Complied"


SEVERITIES = [s.value for s in Severity]
STATUSES = [s.value for s in Status]


def parse_date(value: object) -> date:
    """Parse a calendar date from a date, datetime or string value."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValidationError("blank date")
    # ISO timestamps ("2024-01-15T00:00:00Z") keep only the date part.
    if len(text) > 10 and text[4:5] == "-" and text[10:11] in {"T", " "}:
        text = text[:10]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"could not parse date '{value}'")


def parse_id(value: object) -> int:
    """Integer id from an int, a whole-number float or a digit string."""
    if isinstance(value, bool):
        raise ValidationError(f"invalid observation id '{value}'")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"invalid observation id '{value}'")
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"invalid observation id '{value}'") from None


def parse_severity(value: object) -> Severity:
    try:
        return Severity(value)
    except ValueError:
        raise ValidationError(f"unknown severity '{value}'") from None


def parse_status(value: object) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise ValidationError(f"unknown status '{value}'") from None


@dataclass(frozen=True)
class Observation:
    id: int
    date: date
    chapter: str
    severity: Severity
    status: Status
    description: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Observation":
        raw_id = raw.get("id", raw.get("observationId"))
        obs_id = parse_id(raw_id)
        try:
            obs_date = parse_date(raw.get("date"))
            severity = parse_severity(raw.get("severity"))
            status = parse_status(raw.get("status"))
        except ValidationError as exc:
            raise ValidationError(f"observation {obs_id}: {exc}") from exc
        chapter = str(raw.get("chapter") or "").strip()
        if not chapter:
            raise ValidationError(f"observation {obs_id}: missing chapter")
        description = raw.get("description")
        return cls(
            id=obs_id,
            date=obs_date,
            chapter=chapter,
            severity=severity,
            status=status,
            description="" if description is None else str(description),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "chapter": self.chapter,
            "severity": self.severity.value,
            "status": self.status.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ChapterStats:
    chapter: str
    total: int
    open: int
    complied: int
    compliance_rate: float


@dataclass(frozen=True)
class SeverityMatrixRow:
    chapter: str
    Low: int = 0
    Medium: int = 0
    High: int = 0

    @property
    def total(self) -> int:
        return self.Low + self.Medium + self.High


@dataclass(frozen=True)
class MonthlyCount:
    month: str
    period: str
    status: str
    count: int


@dataclass(frozen=True)
class ChapterMonthlyData:
    month: str
    period: str
    chapter: str
    count: int


@dataclass(frozen=True)
class MetricsSnapshot:
    total: int = 0
    open: int = 0
    complied: int = 0
    compliance_rate: float = 0.0


@dataclass(frozen=True)
class MetricChange:
    metric: str
    current: float
    previous: float
    change: float
    positive: bool


def compliance_rate(complied: int, total: int) -> float:
    return (complied / total) * 100 if total > 0 else 0.0
