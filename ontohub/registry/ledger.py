"""Durable ledger of registrations and ingestion events.

The ingestion core needs a handful of operations from its store of record:
look up a repository's encrypted webhook secret, append a queued event,
attach metrics, and move an event to a terminal status exactly once.
``EventLedger`` names that capability; ``SqlEventLedger`` implements it on
SQLAlchemy's asyncio ORM, so every user-controlled value travels as a bound
parameter.

Status transitions are conditional updates guarded by
``status = 'queued'``. A transition that matches no row is diagnosed as
either an unknown event or a conflict with a terminal status, which keeps
the status monotonic even when two writers race.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import select, update

from ontohub.common.time import utcnow
from ontohub.registry.errors import (
    EventNotFoundError,
    EventStatusConflictError,
    RegistrationNotFoundError,
)
from ontohub.registry.models import (
    EventStatus,
    IngestionEventInfo,
    OntologyMetrics,
    RegistrationStatus,
)
from ontohub.registry.storage import IngestionEvent, Registration

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

type SessionFactory = async_sessionmaker[AsyncSession]


class EventLedger(typ.Protocol):
    """Operations the ingestion core performs against the ledger."""

    async def get_registration_secret(self, owner: str, repo: str) -> str | None:
        """Return the encrypted webhook secret, or ``None`` if unregistered."""
        ...

    async def create_event(
        self, *, owner: str, repo: str, git_ref: str, version: str
    ) -> str:
        """Persist a queued event and return its id once committed."""
        ...

    async def record_metrics(
        self, event_id: str, metrics: OntologyMetrics, partition_uri: str
    ) -> None:
        """Attach index metrics and the written partition to a queued event."""
        ...

    async def mark_loaded(self, event_id: str) -> None:
        """Move a queued event to loaded."""
        ...

    async def mark_failed(self, event_id: str) -> None:
        """Move a queued event to failed."""
        ...

    async def get_event(self, event_id: str) -> IngestionEventInfo:
        """Return the current state of an event."""
        ...


def event_info(row: IngestionEvent) -> IngestionEventInfo:
    """Convert an ``IngestionEvent`` row into its DTO."""
    metrics: OntologyMetrics | None = None
    if row.class_count is not None and row.property_count is not None:
        metrics = OntologyMetrics(
            class_count=row.class_count,
            property_count=row.property_count,
            prefixes=tuple(row.prefixes or ()),
        )
    return IngestionEventInfo(
        id=row.id,
        registration_id=row.registration_id,
        git_ref=row.git_ref,
        version=row.version,
        status=EventStatus(row.status),
        created_at=row.created_at,
        completed_at=row.completed_at,
        metrics=metrics,
        partition_uri=row.partition_uri,
    )


class SqlEventLedger:
    """``EventLedger`` backed by the registry tables.

    Parameters
    ----------
    session_factory
        Async session factory bound to the registry database.

    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the ledger to a session factory."""
        self._session_factory = session_factory

    async def get_registration_secret(self, owner: str, repo: str) -> str | None:
        """Return the encrypted secret of an active registration."""
        async with self._session_factory() as session:
            return await session.scalar(
                select(Registration.webhook_secret_enc).where(
                    Registration.owner == owner,
                    Registration.repo == repo,
                    Registration.status == RegistrationStatus.ACTIVE.value,
                )
            )

    async def create_event(
        self, *, owner: str, repo: str, git_ref: str, version: str
    ) -> str:
        """Insert a queued event and commit before returning its id.

        Raises
        ------
        RegistrationNotFoundError
            If the repository has no registration.

        """
        async with self._session_factory() as session, session.begin():
            registration_id = await session.scalar(
                select(Registration.id).where(
                    Registration.owner == owner,
                    Registration.repo == repo,
                )
            )
            if registration_id is None:
                raise RegistrationNotFoundError(owner, repo)

            event = IngestionEvent(
                registration_id=registration_id,
                git_ref=git_ref,
                version=version,
                status=EventStatus.QUEUED.value,
                created_at=utcnow(),
            )
            session.add(event)
            await session.flush()
            return event.id

    async def record_metrics(
        self, event_id: str, metrics: OntologyMetrics, partition_uri: str
    ) -> None:
        """Store index metrics on a queued event."""
        await self._update_queued(
            event_id,
            requested="metrics",
            values={
                "class_count": metrics.class_count,
                "property_count": metrics.property_count,
                "prefixes": list(metrics.prefixes),
                "partition_uri": partition_uri,
            },
        )

    async def mark_loaded(self, event_id: str) -> None:
        """Move a queued event to loaded."""
        await self._transition(event_id, EventStatus.LOADED)

    async def mark_failed(self, event_id: str) -> None:
        """Move a queued event to failed."""
        await self._transition(event_id, EventStatus.FAILED)

    async def get_event(self, event_id: str) -> IngestionEventInfo:
        """Return the event with id *event_id*.

        Raises
        ------
        EventNotFoundError
            If no such event exists.

        """
        async with self._session_factory() as session:
            row = await session.get(IngestionEvent, event_id)
            if row is None:
                raise EventNotFoundError(event_id)
            return event_info(row)

    async def _transition(self, event_id: str, status: EventStatus) -> None:
        await self._update_queued(
            event_id,
            requested=status.value,
            values={"status": status.value, "completed_at": utcnow()},
        )

    async def _update_queued(
        self,
        event_id: str,
        *,
        requested: str,
        values: dict[str, typ.Any],
    ) -> None:
        async with self._session_factory() as session, session.begin():
            result = typ.cast(
                "CursorResult[typ.Any]",
                await session.execute(
                    update(IngestionEvent)
                    .where(
                        IngestionEvent.id == event_id,
                        IngestionEvent.status == EventStatus.QUEUED.value,
                    )
                    .values(**values)
                ),
            )
            if result.rowcount == 1:
                return
            current = await session.scalar(
                select(IngestionEvent.status).where(IngestionEvent.id == event_id)
            )

        if current is None:
            raise EventNotFoundError(event_id)
        raise EventStatusConflictError(event_id, current, requested)
