"""
Shared fixtures: a controllable clock and a store over an in-memory repository.
"""
from datetime import datetime, timedelta, timezone

import pytest

from mcp_disclosure_ux.adapters import InMemoryRepository
from mcp_disclosure_ux.core import DisclosureRecord, PeriodSequence, RecordStore


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1) -> None:
        self.now += timedelta(seconds=seconds)

    def rewind(self, seconds: float = 1) -> None:
        self.now -= timedelta(seconds=seconds)


def record(name: str, cr: str = None, ownership: float = None, **fields) -> DisclosureRecord:
    return DisclosureRecord(
        entity_name_english=name,
        commercial_registration_number=cr,
        ownership_percentage=ownership,
        **fields
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def periods():
    return PeriodSequence.for_years(2025, 2026)


@pytest.fixture
def store(clock):
    return RecordStore(InMemoryRepository(), clock=clock)
