from datetime import date, datetime

import pytest

from core.errors import ValidationError
from core.models import Observation, Severity, Status, compliance_rate, parse_date


def test_from_dict_accepts_source_field_names():
    obs = Observation.from_dict(
        {
            "observationId": "12",
            "date": "2024-03-05",
            "chapter": " Access Control ",
            "severity": "High",
            "status": "Complied",
            "description": None,
        }
    )
    assert obs.id == 12
    assert obs.date == date(2024, 3, 5)
    assert obs.chapter == "Access Control"
    assert obs.severity is Severity.HIGH
    assert obs.status is Status.COMPLIED
    assert obs.description == ""


@pytest.mark.parametrize(
    "field,value",
    [("date", "2024-13-45"), ("date", ""), ("severity", "Critical"), ("status", "Closed"), ("chapter", "  ")],
)
def test_from_dict_rejects_bad_values(field, value):
    raw = {"id": 7, "date": "2024-01-01", "chapter": "A", "severity": "Low", "status": "Open"}
    raw[field] = value
    with pytest.raises(ValidationError) as excinfo:
        Observation.from_dict(raw)
    assert "observation 7" in str(excinfo.value)


def test_from_dict_requires_numeric_id():
    with pytest.raises(ValidationError):
        Observation.from_dict({"id": "abc", "date": "2024-01-01", "chapter": "A", "severity": "Low", "status": "Open"})


def test_parse_date_formats():
    assert parse_date("2024-02-01") == date(2024, 2, 1)
    assert parse_date("2024-02-01T08:30:00Z") == date(2024, 2, 1)
    assert parse_date("02/15/2024") == date(2024, 2, 15)
    assert parse_date(datetime(2024, 2, 1, 10, 0)) == date(2024, 2, 1)


def test_parse_date_reads_slash_dates_month_first():
    assert parse_date("02/03/2024") == date(2024, 2, 3)
    assert parse_date("12/25/2024") == date(2024, 12, 25)
    with pytest.raises(ValidationError):
        parse_date("25/12/2024")


@pytest.mark.parametrize("raw_id", [1.7, True, float("nan"), "1.5"])
def test_from_dict_rejects_non_integer_ids(raw_id):
    raw = {"id": raw_id, "date": "2024-01-01", "chapter": "A", "severity": "Low", "status": "Open"}
    with pytest.raises(ValidationError):
        Observation.from_dict(raw)


def test_from_dict_accepts_whole_number_float_id():
    raw = {"id": 3.0, "date": "2024-01-01", "chapter": "A", "severity": "Low", "status": "Open"}
    assert Observation.from_dict(raw).id == 3


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_compliance_rate():
    assert compliance_rate(0, 0) == 0.0
    assert compliance_rate(1, 4) == 25.0
    assert compliance_rate(3, 3) == 100.0


def test_as_dict_round_trips_display_fields():
    obs = Observation(id=1, date=date(2024, 1, 2), chapter="A", severity=Severity.LOW, status=Status.OPEN, description="x")
    assert obs.as_dict() == {
        "id": 1,
        "date": "2024-01-02",
        "chapter": "A",
        "severity": "Low",
        "status": "Open",
        "description": "x",
    }
