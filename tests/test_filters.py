from datetime import date

import pytest

from conftest import make_observation
from core.errors import ValidationError
from core.filters import FilterCriteria, default_filters, filter_observations, normalize_filters
from core.models import Severity, Status


def test_empty_criteria_is_identity(mixed_records):
    result = filter_observations(mixed_records, FilterCriteria())
    assert result == mixed_records
    assert result is not mixed_records
    assert all(a is b for a, b in zip(result, mixed_records))


def test_date_bounds_are_inclusive(mixed_records):
    criteria = FilterCriteria(start_date=date(2024, 1, 9), end_date=date(2024, 3, 1))
    ids = [obs.id for obs in filter_observations(mixed_records, criteria)]
    assert ids == [2, 3, 5]


def test_date_strings_are_parsed(mixed_records):
    criteria = FilterCriteria(start_date="2023-12-31", end_date="2024-01-31")
    ids = [obs.id for obs in filter_observations(mixed_records, criteria)]
    assert ids == [2, 3, 4]


def test_malformed_date_raises(mixed_records):
    with pytest.raises(ValidationError):
        filter_observations(mixed_records, FilterCriteria(start_date="2024-01-01", end_date="31st of never"))


def test_dates_must_be_given_together(mixed_records):
    with pytest.raises(ValidationError):
        filter_observations(mixed_records, FilterCriteria(start_date=date(2024, 1, 1)))


def test_chapter_and_status_predicates(mixed_records):
    criteria = FilterCriteria(chapters=["Access", "Continuity"], only_open=True)
    ids = [obs.id for obs in filter_observations(mixed_records, criteria)]
    assert ids == [4, 5]


def test_does_not_mutate_input(mixed_records):
    before = list(mixed_records)
    filter_observations(mixed_records, FilterCriteria(chapters=["Risk"], only_open=True))
    assert mixed_records == before


def test_filter_composition(mixed_records):
    dates = FilterCriteria(start_date=date(2024, 1, 1), end_date=date(2024, 3, 31))
    chapters = FilterCriteria(chapters=["Risk", "Access"])
    combined = FilterCriteria(start_date=date(2024, 1, 1), end_date=date(2024, 3, 31), chapters=["Risk", "Access"])
    stepwise = filter_observations(filter_observations(mixed_records, dates), chapters)
    assert stepwise == filter_observations(mixed_records, combined)


def test_empty_input_yields_empty_list():
    assert filter_observations([], FilterCriteria(only_open=True)) == []


def test_bad_record_fails_whole_call(mixed_records):
    bad = make_observation(id=99, severity="Critical")
    with pytest.raises(ValidationError) as excinfo:
        filter_observations(mixed_records + [bad], FilterCriteria())
    assert "99" in str(excinfo.value)


def test_default_filters_cover_last_six_months():
    f = default_filters(["B", "A", "B"], today=date(2026, 8, 31))
    assert f.start_date == date(2026, 2, 28)
    assert f.end_date == date(2026, 8, 31)
    assert f.chapters == ["A", "B"]
    assert f.only_open is False


def test_normalize_filters_applies_defaults_and_parses():
    f = normalize_filters({}, available_chapters=["Risk", "Access"], today=date(2024, 7, 15))
    assert (f.start_date, f.end_date) == (date(2024, 1, 15), date(2024, 7, 15))
    assert f.chapters == ["Access", "Risk"]

    f = normalize_filters(
        {"start_date": "2024-01-01", "end_date": "2024-02-01", "chapters": "Risk, Access", "only_open": "true"},
        available_chapters=["Risk", "Access", "Continuity"],
    )
    assert (f.start_date, f.end_date) == (date(2024, 1, 1), date(2024, 2, 1))
    assert f.chapters == ["Risk", "Access"]
    assert f.only_open is True


def test_normalize_filters_rejects_half_range():
    with pytest.raises(ValidationError):
        normalize_filters({"end_date": "2024-02-01"})


def test_all_chapters_selected_matches_no_chapter_filter(mixed_records):
    everything = FilterCriteria(chapters=["Access", "Continuity", "Risk"])
    assert filter_observations(mixed_records, everything) == filter_observations(mixed_records, FilterCriteria())


def test_open_only_keeps_open_status(mixed_records):
    result = filter_observations(mixed_records, FilterCriteria(only_open=True))
    assert result and all(obs.status is Status.OPEN for obs in result)
    assert {obs.severity for obs in result} <= set(Severity)
