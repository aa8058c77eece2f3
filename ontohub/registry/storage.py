"""SQLAlchemy tables backing registrations and the ingestion ledger."""

from __future__ import annotations

import datetime as dt
import typing as typ
import uuid

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from ontohub.common.time import utcnow
from ontohub.registry.models import EventStatus, RegistrationStatus

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base for registry tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """Timestamp column that always yields aware UTC datetimes.

    SQLite drops tzinfo on the way back, so results without one are
    reinterpreted as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Reject naive datetimes and normalise aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            msg = "registry timestamps must be timezone aware"
            raise ValueError(msg)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Attach UTC to naive results."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class Registration(Base):
    """A GitHub repository linked for ontology ingestion."""

    __tablename__ = "registrations"
    __table_args__ = (UniqueConstraint("owner", "repo", name="uq_registrations_owner_repo"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner: Mapped[str] = mapped_column(String(255))
    repo: Mapped[str] = mapped_column(String(255))
    registered_by: Mapped[str] = mapped_column(String(255))
    webhook_id: Mapped[str | None] = mapped_column(String(64), default=None)
    webhook_secret_enc: Mapped[str] = mapped_column(Text())
    status: Mapped[str] = mapped_column(
        String(16), default=RegistrationStatus.ACTIVE.value
    )
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    events: Mapped[list[IngestionEvent]] = relationship(back_populates="registration")


class IngestionEvent(Base):
    """Audit record of one webhook-triggered ingestion attempt.

    Rows are never deleted. ``status`` only ever moves away from
    ``queued``; the metric columns and ``partition_uri`` are filled by the
    index stage before the event is marked loaded.
    """

    __tablename__ = "ingestion_events"
    __table_args__ = (
        Index("ix_ingestion_events_registration_time", "registration_id", "created_at"),
        Index("ix_ingestion_events_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    registration_id: Mapped[str] = mapped_column(
        ForeignKey("registrations.id", ondelete="RESTRICT"), nullable=False
    )
    git_ref: Mapped[str] = mapped_column(String(255))
    version: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), default=EventStatus.QUEUED.value)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    completed_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    class_count: Mapped[int | None] = mapped_column(Integer, default=None)
    property_count: Mapped[int | None] = mapped_column(Integer, default=None)
    prefixes: Mapped[list[str] | None] = mapped_column(JSON, default=None)
    partition_uri: Mapped[str | None] = mapped_column(String(1024), default=None)

    registration: Mapped[Registration] = relationship(back_populates="events")


async def init_registry_storage(engine: AsyncEngine) -> None:
    """Create the registry tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
