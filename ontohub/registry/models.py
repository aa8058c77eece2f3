"""Data transfer objects and status vocabulary for the ledger."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from ontohub.common.slug import repo_slug

if typ.TYPE_CHECKING:
    import datetime as dt


class RegistrationStatus(enum.StrEnum):
    """Lifecycle of a linked repository."""

    ACTIVE = "active"


class EventStatus(enum.StrEnum):
    """Persisted status of an ingestion event.

    ``QUEUED`` is the only non-terminal value. Per-stage progress is logged
    but never stored.
    """

    QUEUED = "queued"
    LOADED = "loaded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` for statuses that can never change again."""
        return self is not EventStatus.QUEUED


@dataclasses.dataclass(frozen=True, slots=True)
class OntologyMetrics:
    """Summary statistics derived from one ingested document."""

    class_count: int
    property_count: int
    prefixes: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class RegistrationInfo:
    """Read-only view of a linked repository.

    The encrypted webhook secret is deliberately absent; use
    ``EventLedger.get_registration_secret`` when it is needed.
    """

    id: str
    owner: str
    repo: str
    registered_by: str
    webhook_id: str | None
    status: RegistrationStatus
    created_at: dt.datetime

    @property
    def slug(self) -> str:
        """Return ``owner/repo``."""
        return repo_slug(self.owner, self.repo)


@dataclasses.dataclass(frozen=True, slots=True)
class IngestionEventInfo:
    """Read-only view of one ingestion attempt."""

    id: str
    registration_id: str
    git_ref: str
    version: str
    status: EventStatus
    created_at: dt.datetime
    completed_at: dt.datetime | None = None
    metrics: OntologyMetrics | None = None
    partition_uri: str | None = None
