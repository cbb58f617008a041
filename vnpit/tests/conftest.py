"""
Shared fixtures for the vnpit test suite.

The API client drives the FastAPI app in-process through httpx's ASGI
transport, so no live server is needed.
"""
from __future__ import annotations

from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vnpit.main import app


@pytest_asyncio.fixture
async def client():
    """Async httpx client using ASGI transport — no live server needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def first_day_of_new_law() -> date:
    return date(2026, 7, 1)
