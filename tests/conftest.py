import pytest

from caldav_ics_sync.store import MemoryStatusStore

from fixture_helpers import FakeIO


@pytest.fixture
def store():
    return MemoryStatusStore()


@pytest.fixture
def fake_io():
    return FakeIO()
