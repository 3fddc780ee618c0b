"""Pytest fixtures shared by unit and integration tests.

Fixtures provide a fresh in-memory store per test and sample voter and
poll data.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from voter_api.models import PollRecord, Voter
from voter_api.store import VoterStore


BASE_DATE = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def store() -> VoterStore:
    """Empty store, created fresh for each test."""
    return VoterStore()


@pytest.fixture
def sample_voter() -> Voter:
    """Single voter without history."""
    return Voter(voter_id=1, first_name="John", last_name="Doe")


@pytest.fixture
def sample_voters() -> List[Voter]:
    """A handful of voters with distinct ids."""
    return [
        Voter(voter_id=1, first_name="John", last_name="Doe"),
        Voter(voter_id=2, first_name="Jane", last_name="Roe"),
        Voter(voter_id=3, first_name="Ada", last_name="Lovelace"),
    ]


@pytest.fixture
def make_poll():
    """Helper fixture building poll records a given number of days after BASE_DATE."""
    def _make(poll_id: int, days: int = 0) -> PollRecord:
        return PollRecord(poll_id=poll_id, vote_date=BASE_DATE + timedelta(days=days))

    return _make


@pytest.fixture
def sample_voter_payload() -> Dict:
    """JSON payload for creating a voter over HTTP."""
    return {
        "voter_id": 1,
        "first_name": "John",
        "last_name": "Doe"
    }


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "concurrency: mark test as exercising multi-threaded access"
    )
