from datetime import date

import pytest

from core.models import Observation, Severity, Status


def make_observation(**kwargs):
    defaults = dict(
        id=1,
        date=date(2024, 1, 15),
        chapter="A",
        severity=Severity.LOW,
        status=Status.OPEN,
        description="",
    )
    defaults.update(kwargs)
    return Observation(**defaults)


@pytest.fixture
def scenario_records():
    return [
        make_observation(id=1, date=date(2024, 1, 15), chapter="A", severity=Severity.LOW, status=Status.OPEN),
        make_observation(id=2, date=date(2024, 1, 20), chapter="A", severity=Severity.HIGH, status=Status.COMPLIED),
        make_observation(id=3, date=date(2024, 2, 10), chapter="B", severity=Severity.MEDIUM, status=Status.OPEN),
    ]


@pytest.fixture
def mixed_records():
    return [
        make_observation(id=1, date=date(2023, 2, 3), chapter="Risk", severity=Severity.HIGH, status=Status.OPEN),
        make_observation(id=2, date=date(2024, 1, 9), chapter="Access", severity=Severity.LOW, status=Status.COMPLIED),
        make_observation(id=3, date=date(2024, 1, 30), chapter="Risk", severity=Severity.MEDIUM, status=Status.COMPLIED),
        make_observation(id=4, date=date(2023, 12, 31), chapter="Access", severity=Severity.HIGH, status=Status.OPEN),
        make_observation(id=5, date=date(2024, 3, 1), chapter="Continuity", severity=Severity.LOW, status=Status.OPEN),
        make_observation(id=6, date=date(2024, 3, 2), chapter="Access", severity=Severity.LOW, status=Status.COMPLIED),
        make_observation(id=7, date=date(2024, 3, 31), chapter="Risk", severity=Severity.HIGH, status=Status.COMPLIED),
    ]
