from datetime import date

from conftest import make_observation
from core.filters import FilterCriteria
from core.metrics_trend import compute_trend, monthly_by_chapter, monthly_by_status
from core.models import ChapterMonthlyData, Status


def test_scenario_monthly_by_status(scenario_records):
    rows = [(r.period, r.status, r.count) for r in monthly_by_status(scenario_records)]
    assert rows == [
        ("2024-01", "Open", 1),
        ("2024-01", "Complied", 1),
        ("2024-02", "Open", 1),
        ("2024-02", "Complied", 0),
    ]


def test_month_labels_are_display_strings(scenario_records):
    assert [r.month for r in monthly_by_status(scenario_records)] == ["Jan 2024", "Jan 2024", "Feb 2024", "Feb 2024"]


def test_months_sort_chronologically_not_by_label():
    records = [
        make_observation(id=1, date=date(2024, 1, 5)),
        make_observation(id=2, date=date(2023, 2, 5)),
        make_observation(id=3, date=date(2023, 12, 5), status=Status.COMPLIED),
    ]
    periods = [r.period for r in monthly_by_status(records)]
    assert periods == ["2023-02", "2023-02", "2023-12", "2023-12", "2024-01", "2024-01"]
    labels = list(dict.fromkeys(r.month for r in monthly_by_status(records)))
    assert labels == ["Feb 2023", "Dec 2023", "Jan 2024"]


def test_monthly_by_chapter_is_sparse(mixed_records):
    rows = monthly_by_chapter(mixed_records)
    assert rows == [
        ChapterMonthlyData(month="Feb 2023", period="2023-02", chapter="Risk", count=1),
        ChapterMonthlyData(month="Dec 2023", period="2023-12", chapter="Access", count=1),
        ChapterMonthlyData(month="Jan 2024", period="2024-01", chapter="Access", count=1),
        ChapterMonthlyData(month="Jan 2024", period="2024-01", chapter="Risk", count=1),
        ChapterMonthlyData(month="Mar 2024", period="2024-03", chapter="Access", count=1),
        ChapterMonthlyData(month="Mar 2024", period="2024-03", chapter="Continuity", count=1),
        ChapterMonthlyData(month="Mar 2024", period="2024-03", chapter="Risk", count=1),
    ]
    assert all(r.count >= 1 for r in rows)


def test_status_counts_sum_to_record_count(mixed_records):
    assert sum(r.count for r in monthly_by_status(mixed_records)) == len(mixed_records)


def test_empty_input():
    assert monthly_by_status([]) == []
    assert monthly_by_chapter([]) == []
    assert compute_trend(FilterCriteria(), [])["charts"] == {}


def test_trend_payload(scenario_records):
    payload = compute_trend(FilterCriteria(), scenario_records)
    assert len(payload["by_status"]) == 4
    assert payload["by_chapter"][0] == {"month": "Jan 2024", "period": "2024-01", "chapter": "A", "count": 2}
    assert set(payload["charts"]) == {"status_trend", "chapter_trend"}
    assert payload["charts"]["status_trend"]["encoding"]["x"]["sort"] == ["Jan 2024", "Feb 2024"]
