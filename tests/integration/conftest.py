"""Pytest fixtures for integration tests.

Each test gets its own application wrapped around its own store, served
in-process through httpx's ASGI transport.
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from voter_api.config import Settings
from voter_api.main import create_app
from voter_api.store import VoterStore


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests, independent of any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def app(store: VoterStore, test_settings: Settings) -> FastAPI:
    """Application serving the per-test store."""
    return create_app(store=store, settings=test_settings)


@pytest_asyncio.fixture
async def api_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for making API requests.

    Returns an async httpx client bound to the in-process application.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0) as client:
        yield client


@pytest_asyncio.fixture
async def created_voter(api_client: httpx.AsyncClient, sample_voter_payload: dict) -> dict:
    """Voter created through the API before the test runs."""
    response = await api_client.post("/voters", json=sample_voter_payload)
    assert response.status_code == 201
    return response.json()
