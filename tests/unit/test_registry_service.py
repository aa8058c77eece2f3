"""Unit tests for the registration bookkeeping service.

Usage
-----
Run with pytest::

    pytest tests/unit/test_registry_service.py

"""

from __future__ import annotations

import typing as typ

import pytest

from ontohub.registry import (
    RegistrationExistsError,
    RegistrationNotFoundError,
    RegistrationService,
    RegistrationStatus,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from ontohub.registry import SqlEventLedger
    from ontohub.security import SecretVault


@pytest.fixture
def service(
    session_factory: async_sessionmaker[AsyncSession], vault: SecretVault
) -> RegistrationService:
    """Return a service over the test database."""
    return RegistrationService(session_factory, vault)


class TestRegister:
    """register() and get_registration()."""

    @pytest.mark.asyncio
    async def test_register_round_trip(self, service: RegistrationService) -> None:
        """A stored registration reads back without its secret."""
        created = await service.register(
            "acme", "pizza", registered_by="alice", secret="s3cret", webhook_id="42"
        )
        fetched = await service.get_registration("acme", "pizza")

        assert fetched == created
        assert fetched.slug == "acme/pizza"
        assert fetched.webhook_id == "42"
        assert fetched.status is RegistrationStatus.ACTIVE
        assert not hasattr(fetched, "webhook_secret_enc")

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, service: RegistrationService) -> None:
        """A repository can only be registered once."""
        await service.register("acme", "pizza", registered_by="alice", secret="a")
        with pytest.raises(RegistrationExistsError, match="acme/pizza"):
            await service.register("acme", "pizza", registered_by="bob", secret="b")

    @pytest.mark.asyncio
    async def test_unknown_registration(self, service: RegistrationService) -> None:
        """Looking up an unregistered repository raises."""
        with pytest.raises(RegistrationNotFoundError):
            await service.get_registration("acme", "missing")


class TestListEvents:
    """list_events() ordering and limits."""

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(
        self, service: RegistrationService, ledger: SqlEventLedger
    ) -> None:
        """Events come back newest first and are capped by limit."""
        await service.register("acme", "pizza", registered_by="alice", secret="s")
        ids = [
            await ledger.create_event(
                owner="acme", repo="pizza", git_ref=f"refs/tags/v{n}", version=f"v{n}"
            )
            for n in range(3)
        ]

        events = await service.list_events("acme", "pizza", limit=2)

        assert [event.id for event in events] == [ids[2], ids[1]]

    @pytest.mark.asyncio
    async def test_other_repositories_are_excluded(
        self, service: RegistrationService, ledger: SqlEventLedger
    ) -> None:
        """Only events of the requested repository are listed."""
        await service.register("acme", "pizza", registered_by="alice", secret="s")
        await service.register("acme", "pasta", registered_by="alice", secret="s")
        await ledger.create_event(
            owner="acme", repo="pasta", git_ref="HEAD", version="HEAD"
        )
        assert await service.list_events("acme", "pizza") == []
