"""Unit tests for the request and response models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from voter_api.models import PollRecord, PollUpdate, VoterUpdate


class TestPollModels:
    """PollRecord and PollUpdate share their vote_date handling."""

    def test_naive_vote_date_is_utc(self):
        poll = PollRecord(poll_id=1, vote_date=datetime(2024, 1, 15, 10, 30))

        assert poll.vote_date.tzinfo == timezone.utc

    def test_poll_update_naive_vote_date_is_utc(self):
        body = PollUpdate(vote_date=datetime(2024, 1, 15, 10, 30))

        assert body.poll_id is None
        assert body.vote_date.tzinfo == timezone.utc

    def test_poll_update_uses_path_id(self):
        body = PollUpdate(poll_id=42, vote_date="2024-02-01T08:00:00")

        poll = body.to_poll(1)

        assert type(poll) is PollRecord
        assert poll.poll_id == 1
        assert poll.vote_date == datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)

    def test_poll_update_rejects_negative_id(self):
        with pytest.raises(ValidationError):
            PollUpdate(poll_id=-1)


def test_voter_update_uses_path_id():
    body = VoterUpdate(voter_id=99, first_name="Jack", last_name="Doe")

    voter = body.to_voter(1)

    assert voter.voter_id == 1
    assert voter.first_name == "Jack"
