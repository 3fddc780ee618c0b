"""Voter and poll-history endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings, settings
from .models import (
    ErrorResponse,
    HealthResponse,
    PollRecord,
    PollUpdate,
    Voter,
    VoterUpdate
)
from .store import VoterStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Voters"])

# Rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
_rate_limit = settings.RATE_LIMIT

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Voter or poll not found"}}
BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Malformed request"}}
RATE_LIMITED = {429: {"description": "Rate limit exceeded"}}

VoterID = Path(..., ge=0, description="Voter identifier")
PollID = Path(..., ge=0, description="Poll identifier")


def rate_limit() -> str:
    """Limit applied to every endpoint, read on each request."""
    return _rate_limit


def configure_rate_limit(app_settings: Settings) -> None:
    """Apply an application's rate-limit settings and clear recorded hits."""
    global _rate_limit
    _rate_limit = app_settings.RATE_LIMIT
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    limiter.reset()


def get_store(request: Request) -> VoterStore:
    """Dependency returning the store owned by the running application."""
    return request.app.state.store


def voter_not_found(voter_id: int) -> HTTPException:
    logger.warning(f"Voter not found: voter_id={voter_id}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Voter {voter_id} not found"
    )


def poll_not_found(voter_id: int, poll_id: int) -> HTTPException:
    logger.warning(f"Poll not found: voter_id={voter_id}, poll_id={poll_id}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Poll {poll_id} not found for voter {voter_id}"
    )


def internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


# ═══════════════════════════════════════════════════════════════════
# VOTER ENDPOINTS
# ═══════════════════════════════════════════════════════════════════

@router.get("/voters", response_model=list[Voter], responses=RATE_LIMITED)
@limiter.limit(rate_limit)
def list_voters(request: Request, store: VoterStore = Depends(get_store)) -> list[Voter]:
    """Get all voters, including their full voting history."""
    try:
        return store.list_voters()
    except Exception as e:
        raise internal_error("listing voters", e)


@router.post(
    "/voters",
    response_model=Voter,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def create_voter(request: Request, voter: Voter, store: VoterStore = Depends(get_store)) -> Voter:
    """
    Add a voter, replacing any voter with the same id.

    - **voter_id**: Voter identifier (non-negative integer)
    - **first_name** / **last_name**: Voter name
    - **vote_history**: Optional initial poll history
    """
    try:
        store.add_voter(voter)
        logger.info(f"Voter stored: voter_id={voter.voter_id}")
        return voter
    except Exception as e:
        raise internal_error("creating voter", e)


@router.get(
    "/voters/{voter_id}",
    response_model=Voter,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def get_voter(
    request: Request,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> Voter:
    """Get a single voter including their entire voting history."""
    try:
        voter = store.get_voter(voter_id)
        if voter is None:
            raise voter_not_found(voter_id)
        return voter
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"getting voter {voter_id}", e)


@router.post(
    "/voters/{voter_id}",
    response_model=Voter,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def create_voter_at(
    request: Request,
    voter: Voter,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> Voter:
    """
    Add a voter, replacing any voter with the same id.

    Same as POST /voters: the voter is stored under the voter_id of the
    body, not the one in the path.
    """
    try:
        store.add_voter(voter)
        logger.info(f"Voter stored: voter_id={voter.voter_id}, path_id={voter_id}")
        return voter
    except Exception as e:
        raise internal_error(f"creating voter {voter.voter_id}", e)


@router.put(
    "/voters/{voter_id}",
    response_model=Voter,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def update_voter(
    request: Request,
    body: VoterUpdate,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> Voter:
    """Replace an existing voter. The id in the body, if any, is ignored."""
    try:
        voter = body.to_voter(voter_id)
        if not store.update_voter(voter_id, voter):
            raise voter_not_found(voter_id)
        logger.info(f"Voter updated: voter_id={voter_id}")
        return voter
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"updating voter {voter_id}", e)


@router.delete(
    "/voters/{voter_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def delete_voter(
    request: Request,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> Response:
    """Remove a voter and their history."""
    try:
        if not store.delete_voter(voter_id):
            raise voter_not_found(voter_id)
        logger.info(f"Voter deleted: voter_id={voter_id}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"deleting voter {voter_id}", e)


# ═══════════════════════════════════════════════════════════════════
# POLL HISTORY ENDPOINTS
# ═══════════════════════════════════════════════════════════════════

@router.get(
    "/voters/{voter_id}/polls",
    response_model=list[PollRecord],
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def get_voter_history(
    request: Request,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> list[PollRecord]:
    """Get just the voting history of a voter."""
    try:
        history = store.get_voter_history(voter_id)
        if history is None:
            raise voter_not_found(voter_id)
        return history
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"getting history of voter {voter_id}", e)


@router.get(
    "/voters/{voter_id}/polls/{poll_id}",
    response_model=PollRecord,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def get_voter_poll(
    request: Request,
    voter_id: int = VoterID,
    poll_id: int = PollID,
    store: VoterStore = Depends(get_store)
) -> PollRecord:
    """Get a single poll record from a voter's history."""
    try:
        poll = store.get_voter_poll(voter_id, poll_id)
        if poll is None:
            raise poll_not_found(voter_id, poll_id)
        return poll
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"getting poll {poll_id} of voter {voter_id}", e)


@router.post(
    "/voters/{voter_id}/polls",
    response_model=PollRecord,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def add_poll(
    request: Request,
    poll: PollRecord,
    voter_id: int = VoterID,
    store: VoterStore = Depends(get_store)
) -> PollRecord:
    """
    Append a poll record to a voter's history.

    - **poll_id**: Poll identifier
    - **vote_date**: When the vote was cast (defaults to now)
    """
    try:
        if not store.add_poll(voter_id, poll):
            raise voter_not_found(voter_id)
        logger.info(f"Poll recorded: voter_id={voter_id}, poll_id={poll.poll_id}")
        return poll
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"adding poll to voter {voter_id}", e)


@router.put(
    "/voters/{voter_id}/polls/{poll_id}",
    response_model=PollRecord,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def update_poll(
    request: Request,
    body: PollUpdate,
    voter_id: int = VoterID,
    poll_id: int = PollID,
    store: VoterStore = Depends(get_store)
) -> PollRecord:
    """Replace the first history entry with the given poll id."""
    try:
        poll = body.to_poll(poll_id)
        if not store.update_poll(voter_id, poll_id, poll):
            raise poll_not_found(voter_id, poll_id)
        logger.info(f"Poll updated: voter_id={voter_id}, poll_id={poll_id}")
        return poll
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"updating poll {poll_id} of voter {voter_id}", e)


@router.delete(
    "/voters/{voter_id}/polls/{poll_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**NOT_FOUND, **BAD_REQUEST, **RATE_LIMITED}
)
@limiter.limit(rate_limit)
def delete_poll(
    request: Request,
    voter_id: int = VoterID,
    poll_id: int = PollID,
    store: VoterStore = Depends(get_store)
) -> Response:
    """Remove the first history entry with the given poll id."""
    try:
        if not store.delete_poll(voter_id, poll_id):
            raise poll_not_found(voter_id, poll_id)
        logger.info(f"Poll deleted: voter_id={voter_id}, poll_id={poll_id}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(f"deleting poll {poll_id} of voter {voter_id}", e)


# ═══════════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════════

@router.get("/health", response_model=HealthResponse, tags=["Health"], responses=RATE_LIMITED)
@limiter.limit(rate_limit)
def health_check(request: Request, store: VoterStore = Depends(get_store)) -> HealthResponse:
    """
    Report that the API is up, with uptime and call counters.

    The request being served is already included in total_api_calls.
    """
    health = store.health_check()
    return HealthResponse(
        boot_time=health.boot_time,
        uptime=str(health.uptime),
        uptime_seconds=health.uptime.total_seconds(),
        total_api_calls=health.total_calls,
        total_error_calls=health.error_calls
    )
