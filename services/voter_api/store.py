"""In-memory voter store shared by all request handlers."""
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .models import PollRecord, Voter
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealthStatus:
    """Snapshot of store metadata returned by health_check()."""
    boot_time: datetime
    uptime: timedelta
    total_calls: int
    error_calls: int


class VoterStore:
    """
    Thread-safe in-memory collection of voters and their poll history.

    A single reader/writer lock guards the voter mapping and every nested
    history list, so each public method is atomic with respect to every
    other one. Voters are deep-copied on the way in and on the way out;
    callers never hold a reference into the store.

    Absence is reported through the return value (None or False), never by
    raising.
    """

    def __init__(self):
        self._voters: Dict[int, Voter] = {}
        self._lock = ReadWriteLock()

        self._boot_time = datetime.now(timezone.utc)
        self._boot_clock = time.monotonic()

        # Call counters have their own lock so accounting never waits on data writes
        self._counter_lock = threading.Lock()
        self._total_calls = 0
        self._error_calls = 0

    @property
    def boot_time(self) -> datetime:
        return self._boot_time

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._voters)

    # Voters

    def list_voters(self) -> List[Voter]:
        """Return copies of all voters. Order is not guaranteed."""
        with self._lock.read_locked():
            return [voter.model_copy(deep=True) for voter in self._voters.values()]

    def get_voter(self, voter_id: int) -> Optional[Voter]:
        with self._lock.read_locked():
            voter = self._voters.get(voter_id)
            return voter.model_copy(deep=True) if voter is not None else None

    def add_voter(self, voter: Voter) -> None:
        """Insert a voter, replacing any existing record with the same id entirely."""
        stored = voter.model_copy(deep=True)
        with self._lock.write_locked():
            replaced = stored.voter_id in self._voters
            self._voters[stored.voter_id] = stored
        logger.debug(f"Voter {stored.voter_id} {'replaced' if replaced else 'added'}")

    def update_voter(self, voter_id: int, voter: Voter) -> bool:
        """
        Replace an existing voter.

        The stored record always carries ``voter_id``, whatever id ``voter``
        holds.

        Returns:
            False if no voter with ``voter_id`` exists.
        """
        stored = voter.model_copy(update={"voter_id": voter_id}, deep=True)
        with self._lock.write_locked():
            if voter_id not in self._voters:
                return False
            self._voters[voter_id] = stored
        logger.debug(f"Voter {voter_id} updated")
        return True

    def delete_voter(self, voter_id: int) -> bool:
        with self._lock.write_locked():
            if self._voters.pop(voter_id, None) is None:
                return False
        logger.debug(f"Voter {voter_id} deleted")
        return True

    # Poll history

    def get_voter_history(self, voter_id: int) -> Optional[List[PollRecord]]:
        with self._lock.read_locked():
            voter = self._voters.get(voter_id)
            if voter is None:
                return None
            return [poll.model_copy() for poll in voter.vote_history]

    def get_voter_poll(self, voter_id: int, poll_id: int) -> Optional[PollRecord]:
        """
        Return the first history entry matching ``poll_id``.

        None is returned both for an unknown voter and for a known voter
        without that poll.
        """
        with self._lock.read_locked():
            voter = self._voters.get(voter_id)
            if voter is None:
                return None
            index = self._find_poll(voter, poll_id)
            if index is None:
                return None
            return voter.vote_history[index].model_copy()

    def add_poll(self, voter_id: int, poll: PollRecord) -> bool:
        """
        Append a poll to a voter's history.

        Duplicate poll ids are accepted; update_poll() and delete_poll()
        only ever touch the first match.
        """
        stored = poll.model_copy()
        with self._lock.write_locked():
            voter = self._voters.get(voter_id)
            if voter is None:
                return False
            voter.vote_history.append(stored)
        logger.debug(f"Poll {stored.poll_id} added to voter {voter_id}")
        return True

    def update_poll(self, voter_id: int, poll_id: int, poll: PollRecord) -> bool:
        stored = poll.model_copy(update={"poll_id": poll_id})
        with self._lock.write_locked():
            voter = self._voters.get(voter_id)
            if voter is None:
                return False
            index = self._find_poll(voter, poll_id)
            if index is None:
                return False
            voter.vote_history[index] = stored
        logger.debug(f"Poll {poll_id} of voter {voter_id} updated")
        return True

    def delete_poll(self, voter_id: int, poll_id: int) -> bool:
        with self._lock.write_locked():
            voter = self._voters.get(voter_id)
            if voter is None:
                return False
            index = self._find_poll(voter, poll_id)
            if index is None:
                return False
            del voter.vote_history[index]
        logger.debug(f"Poll {poll_id} of voter {voter_id} deleted")
        return True

    @staticmethod
    def _find_poll(voter: Voter, poll_id: int) -> Optional[int]:
        # Caller must hold the lock
        for index, poll in enumerate(voter.vote_history):
            if poll.poll_id == poll_id:
                return index
        return None

    # Metadata

    def health_check(self) -> HealthStatus:
        with self._lock.read_locked():
            uptime = timedelta(seconds=max(0.0, time.monotonic() - self._boot_clock))
            with self._counter_lock:
                return HealthStatus(
                    boot_time=self._boot_time,
                    uptime=uptime,
                    total_calls=self._total_calls,
                    error_calls=self._error_calls
                )

    def increment_total_calls(self) -> None:
        with self._counter_lock:
            self._total_calls += 1

    def increment_error_calls(self) -> None:
        with self._counter_lock:
            self._error_calls += 1
