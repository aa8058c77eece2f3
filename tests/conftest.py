"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import dramatiq
import pytest
import pytest_asyncio
from dramatiq.brokers.stub import StubBroker
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ontohub.registry import SqlEventLedger, init_registry_storage
from ontohub.security import SecretVault, generate_key

if typ.TYPE_CHECKING:
    from pathlib import Path

# The ingestion actor registers itself with the global broker on import;
# without ONTOHUB_BROKER_URL the broker bootstrap keeps this stub.
dramatiq.set_broker(StubBroker())


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by an on-disk SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ontohub_test.db'}")
    try:
        await init_registry_storage(engine)
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def vault() -> SecretVault:
    """Return a vault with a freshly generated key."""
    return SecretVault.from_hex(generate_key())


@pytest.fixture
def ledger(session_factory: async_sessionmaker[AsyncSession]) -> SqlEventLedger:
    """Return a SQL ledger over the test database."""
    return SqlEventLedger(session_factory)
