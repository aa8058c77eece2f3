"""Repository registrations and the durable ingestion-event ledger."""

from __future__ import annotations

from .errors import (
    EventNotFoundError,
    EventStatusConflictError,
    RegistrationExistsError,
    RegistrationNotFoundError,
    RegistryError,
)
from .ledger import EventLedger, SqlEventLedger
from .models import (
    EventStatus,
    IngestionEventInfo,
    OntologyMetrics,
    RegistrationInfo,
    RegistrationStatus,
)
from .service import RegistrationService
from .storage import IngestionEvent, Registration, init_registry_storage

__all__ = [
    "EventLedger",
    "EventNotFoundError",
    "EventStatus",
    "EventStatusConflictError",
    "IngestionEvent",
    "IngestionEventInfo",
    "OntologyMetrics",
    "Registration",
    "RegistrationExistsError",
    "RegistrationInfo",
    "RegistrationNotFoundError",
    "RegistrationService",
    "RegistrationStatus",
    "RegistryError",
    "SqlEventLedger",
    "init_registry_storage",
]
