"""Errors raised by the registration and ingestion-event ledger."""

from __future__ import annotations

from ontohub.common.slug import repo_slug
from ontohub.errors import NotFoundError, OntohubError


class RegistryError(OntohubError):
    """Base class for ledger errors that are not lookups."""


class RegistrationNotFoundError(NotFoundError):
    """Raised when no registration exists for a repository."""

    def __init__(self, owner: str, repo: str) -> None:
        """Initialise with the repository that has no registration."""
        self.owner = owner
        self.repo = repo
        super().__init__(f"No registration exists for '{repo_slug(owner, repo)}'")


class RegistrationExistsError(RegistryError):
    """Raised when registering a repository that is already linked."""

    def __init__(self, owner: str, repo: str) -> None:
        """Initialise with the repository that is already registered."""
        self.owner = owner
        self.repo = repo
        super().__init__(f"'{repo_slug(owner, repo)}' is already registered")


class EventNotFoundError(NotFoundError):
    """Raised when an ingestion event id is unknown."""

    def __init__(self, event_id: str) -> None:
        """Initialise with the missing event id."""
        self.event_id = event_id
        super().__init__(f"Ingestion event not found: {event_id}")


class EventStatusConflictError(RegistryError):
    """Raised when an event is no longer in a state that allows a change.

    Loaded and failed are terminal, so any attempt to move or annotate an
    event that already reached one of them is rejected.
    """

    def __init__(self, event_id: str, current: str, requested: str) -> None:
        """Initialise with the event, its current status, and the request."""
        self.event_id = event_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Ingestion event {event_id} is {current}; cannot apply {requested}"
        )
