"""Registration bookkeeping used by the CLI and by tests.

Linking a repository (installing the GitHub hook, managing user sessions)
is owned by a separate service. This module only covers what an operator
needs to seed and inspect the ledger: store a registration with its secret
encrypted, read it back, and list its ingestion events.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ontohub.common.time import utcnow
from ontohub.registry.errors import RegistrationExistsError, RegistrationNotFoundError
from ontohub.registry.ledger import event_info
from ontohub.registry.models import (
    IngestionEventInfo,
    RegistrationInfo,
    RegistrationStatus,
)
from ontohub.registry.storage import IngestionEvent, Registration

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from ontohub.security.vault import SecretVault

type SessionFactory = async_sessionmaker[AsyncSession]

_DEFAULT_EVENT_LIMIT = 20


def _registration_info(row: Registration) -> RegistrationInfo:
    return RegistrationInfo(
        id=row.id,
        owner=row.owner,
        repo=row.repo,
        registered_by=row.registered_by,
        webhook_id=row.webhook_id,
        status=RegistrationStatus(row.status),
        created_at=row.created_at,
    )


class RegistrationService:
    """Create and inspect repository registrations.

    Parameters
    ----------
    session_factory
        Async session factory bound to the registry database.
    vault
        Vault used to encrypt webhook secrets before they are stored.

    """

    def __init__(self, session_factory: SessionFactory, vault: SecretVault) -> None:
        """Configure the service with a session factory and vault."""
        self._session_factory = session_factory
        self._vault = vault

    async def register(
        self,
        owner: str,
        repo: str,
        *,
        registered_by: str,
        secret: str,
        webhook_id: str | None = None,
    ) -> RegistrationInfo:
        """Store a new registration with *secret* encrypted at rest.

        Raises
        ------
        RegistrationExistsError
            If the repository is already registered.

        """
        row = Registration(
            owner=owner,
            repo=repo,
            registered_by=registered_by,
            webhook_id=webhook_id,
            webhook_secret_enc=self._vault.encrypt(secret),
            status=RegistrationStatus.ACTIVE.value,
            created_at=utcnow(),
        )
        try:
            async with self._session_factory() as session, session.begin():
                session.add(row)
                await session.flush()
        except IntegrityError as exc:
            raise RegistrationExistsError(owner, repo) from exc
        return _registration_info(row)

    async def get_registration(self, owner: str, repo: str) -> RegistrationInfo:
        """Return the registration for ``owner/repo``.

        Raises
        ------
        RegistrationNotFoundError
            If the repository is not registered.

        """
        async with self._session_factory() as session:
            row = await session.scalar(
                select(Registration).where(
                    Registration.owner == owner, Registration.repo == repo
                )
            )
        if row is None:
            raise RegistrationNotFoundError(owner, repo)
        return _registration_info(row)

    async def list_events(
        self, owner: str, repo: str, *, limit: int = _DEFAULT_EVENT_LIMIT
    ) -> list[IngestionEventInfo]:
        """Return the most recent ingestion events for ``owner/repo``."""
        registration = await self.get_registration(owner, repo)
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(IngestionEvent)
                .where(IngestionEvent.registration_id == registration.id)
                .order_by(IngestionEvent.created_at.desc())
                .limit(limit)
            )
            return [event_info(row) for row in rows]
