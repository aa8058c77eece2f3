"""Errors raised by the ingestion stages."""

from __future__ import annotations

import typing as typ

from ontohub.common.slug import repo_slug
from ontohub.errors import NotFoundError, OntohubError


class IngestionError(OntohubError):
    """Base class for content errors detected by a pipeline stage."""


class OntologyNotFoundError(NotFoundError):
    """Raised when a repository has no ontology file at the requested ref."""

    def __init__(self, owner: str, repo: str, ref: str) -> None:
        """Initialise with the repository and ref that were searched."""
        self.owner = owner
        self.repo = repo
        self.ref = ref
        super().__init__(
            f"No ontology document found in '{repo_slug(owner, repo)}' at {ref}"
        )


class DocumentParseError(IngestionError):
    """Raised when a document is not valid in its declared serialization.

    Attributes
    ----------
    line, column
        One-based position of the failure when the parser reports one.

    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialise with the parser message and optional position."""
        self.line = line
        self.column = column
        location = ""
        if line is not None and column is not None:
            location = f" (line {line}, column {column})"
        elif line is not None:
            location = f" (line {line})"
        super().__init__(f"{message}{location}")


class ConformanceError(IngestionError):
    """Raised when a document violates the conformance shapes.

    Attributes
    ----------
    violations
        Human-readable violation messages in deterministic order.

    """

    def __init__(self, violations: typ.Sequence[str]) -> None:
        """Initialise with the ordered violation messages."""
        self.violations = tuple(violations)
        count = len(self.violations)
        noun = "violation" if count == 1 else "violations"
        summary = f"Document does not conform: {count} {noun}"
        if self.violations:
            summary = f"{summary}; first: {self.violations[0]}"
        super().__init__(summary)
