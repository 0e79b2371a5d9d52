"""Shared fixtures for integration tests.

These tests run the real app, lifespan included, against the in-memory
store: data entry → charts → dashboard, with no mocks on internal
components.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from clinicdash.api.app import create_app


@pytest.fixture()
async def live_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncClient]:
    """Full ASGI client; settings come from the environment as in production."""
    monkeypatch.setenv("CLINICDASH_PG_DSN", "")
    monkeypatch.setenv("CLINICDASH_SEED_DEMO", "false")
    monkeypatch.setenv("CLINICDASH_LOG_JSON", "false")
    monkeypatch.setenv("CLINICDASH_PERFORMANCE_TARGET", "25")

    app = create_app()
    transport = ASGITransport(app=app)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture()
async def demo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncClient]:
    monkeypatch.setenv("CLINICDASH_PG_DSN", "")
    monkeypatch.setenv("CLINICDASH_SEED_DEMO", "true")
    monkeypatch.setenv("CLINICDASH_LOG_JSON", "false")

    app = create_app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
