"""
Voter API: in-memory voters and their per-poll voting history over HTTP.

This package contains:
- VoterStore: thread-safe in-memory store (the only owner of voter state)
- ReadWriteLock: shared/exclusive lock guarding the store
- Pydantic models for voters, poll records and health data
- The FastAPI application factory (voter_api.main.create_app)
"""

from .models import (
    ErrorResponse,
    HealthResponse,
    PollRecord,
    PollUpdate,
    Voter,
    VoterUpdate,
)
from .rwlock import ReadWriteLock
from .store import HealthStatus, VoterStore

__all__ = [
    'ErrorResponse',
    'HealthResponse',
    'HealthStatus',
    'PollRecord',
    'PollUpdate',
    'ReadWriteLock',
    'Voter',
    'VoterStore',
    'VoterUpdate',
]

__version__ = '1.0.0'
