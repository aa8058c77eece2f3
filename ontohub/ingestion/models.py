"""Value objects passed between ingestion stages."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from ontohub.common.slug import repo_slug

if typ.TYPE_CHECKING:
    from rdflib import Graph

    from ontohub.registry.models import EventStatus, OntologyMetrics


class PipelineStage(enum.StrEnum):
    """Logical progress of a pipeline run.

    Only ``queued``, ``loaded`` and ``failed`` are persisted; the
    intermediate stages appear in logs.
    """

    QUEUED = "queued"
    FETCHING = "fetching"
    PARSING = "parsing"
    VALIDATING = "validating"
    WRITING = "writing"
    INDEXING = "indexing"
    LOADED = "loaded"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class IngestionJob:
    """Everything a worker needs to process one accepted delivery.

    Plain strings only, so the job survives a trip through a message
    broker.
    """

    event_id: str
    owner: str
    repo: str
    git_ref: str
    version: str
    delivery_id: str | None = None

    @property
    def slug(self) -> str:
        """Return ``owner/repo``."""
        return repo_slug(self.owner, self.repo)

    @property
    def partition_key(self) -> tuple[str, str, str]:
        """Return the key identifying the dataset partition this job writes."""
        return (self.owner, self.repo, self.version)


@dataclasses.dataclass(frozen=True, slots=True)
class FetchedDocument:
    """Raw ontology bytes downloaded from a repository."""

    path: str
    content_type: str
    content: bytes
    source_url: str

    def text(self) -> str:
        """Decode the content as UTF-8, tolerating a byte-order mark."""
        return self.content.decode("utf-8-sig")


@dataclasses.dataclass(slots=True)
class ParsedDocument:
    """Statements of one document plus the prefixes it declares.

    Attributes
    ----------
    graph
        Every statement of the source. Named graphs from quad formats are
        flattened into this single graph.
    prefixes
        Prefix name to namespace IRI, as declared in the source text. The
        empty string names the default prefix.
    content_type
        Media type the document was parsed as.

    """

    graph: Graph
    prefixes: dict[str, str]
    content_type: str

    def __len__(self) -> int:
        """Return the number of statements."""
        return len(self.graph)


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationViolation:
    """One constraint violation reported by the validator."""

    message: str
    focus_node: str | None = None
    path: str | None = None
    severity: str = "Violation"

    def describe(self) -> str:
        """Return a single-line description for logs and errors."""
        parts = [self.message]
        if self.focus_node is not None:
            parts.append(f"focus={self.focus_node}")
        if self.path is not None:
            parts.append(f"path={self.path}")
        return " ".join(parts)


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of validating a document against the conformance shapes."""

    conforms: bool
    violations: tuple[ValidationViolation, ...] = ()

    def messages(self) -> list[str]:
        """Return the violation descriptions in report order."""
        return [violation.describe() for violation in self.violations]


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineOutcome:
    """Terminal result of one pipeline run."""

    event_id: str
    status: EventStatus
    stage: PipelineStage
    partition_uri: str | None = None
    metrics: OntologyMetrics | None = None
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        """Return ``True`` when the run reached ``loaded``."""
        return self.stage is PipelineStage.LOADED
