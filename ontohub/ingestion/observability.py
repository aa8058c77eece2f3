"""Structured log events for ingestion runs.

Each line starts with a bracketed event type followed by ``key=value``
pairs, so log aggregators can filter and parse runs without a separate
metrics pipeline. Failures carry an ``error_category`` for alert routing.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from ontohub.errors import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    UpstreamError,
)
from ontohub.ingestion.errors import ConformanceError, DocumentParseError
from ontohub.logging import get_logger, log_error, log_info, log_warning
from ontohub.registry.errors import EventStatusConflictError

if typ.TYPE_CHECKING:
    import datetime as dt

    from ontohub.ingestion.models import IngestionJob, PipelineStage
    from ontohub.registry.models import OntologyMetrics

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class PipelineEventType(enum.StrEnum):
    """Structured log event types for pipeline observability."""

    RUN_STARTED = "ingestion.run.started"
    STAGE_STARTED = "ingestion.stage.started"
    RUN_LOADED = "ingestion.run.loaded"
    RUN_FAILED = "ingestion.run.failed"
    VALIDATION_VIOLATION = "ingestion.validation.violation"
    LEDGER_WRITE_FAILED = "ingestion.ledger.write_failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    INVALID_DOCUMENT = "invalid_document"
    NON_CONFORMANT = "non_conformant"
    CONFIGURATION = "configuration"
    LEDGER_CONFLICT = "ledger_conflict"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (NotFoundError, ErrorCategory.NOT_FOUND),
    (AuthenticationError, ErrorCategory.AUTHENTICATION),
    (DocumentParseError, ErrorCategory.INVALID_DOCUMENT),
    (ConformanceError, ErrorCategory.NON_CONFORMANT),
    (ConfigurationError, ErrorCategory.CONFIGURATION),
    (EventStatusConflictError, ErrorCategory.LEDGER_CONFLICT),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Upstream failures without a status code (timeouts, refused
    connections) and 5xx answers are transient; other upstream statuses
    are client errors.
    """
    if isinstance(exc, UpstreamError):
        if (
            exc.status_code is None
            or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineRunContext:
    """Shared context for a single pipeline run."""

    job: IngestionJob
    started_at: dt.datetime


class PipelineEventLogger:
    """Emit structured pipeline events through femtologging.

    Success events are logged at INFO, validation violations at WARNING,
    and failures at ERROR.
    """

    def log_run_started(self, context: PipelineRunContext) -> None:
        """Log that a run picked up a queued event."""
        job = context.job
        log_info(
            logger,
            "[%s] event_id=%s repo_slug=%s git_ref=%s version=%s delivery_id=%s",
            PipelineEventType.RUN_STARTED,
            job.event_id,
            job.slug,
            job.git_ref,
            job.version,
            job.delivery_id,
        )

    def log_stage_started(
        self, context: PipelineRunContext, stage: PipelineStage
    ) -> None:
        """Log entry into a pipeline stage."""
        log_info(
            logger,
            "[%s] event_id=%s stage=%s",
            PipelineEventType.STAGE_STARTED,
            context.job.event_id,
            stage,
        )

    def log_run_loaded(
        self,
        context: PipelineRunContext,
        partition_uri: str,
        metrics: OntologyMetrics,
        duration: dt.timedelta,
    ) -> None:
        """Log a run that reached ``loaded``."""
        log_info(
            logger,
            "[%s] event_id=%s repo_slug=%s partition_uri=%s duration_seconds=%.3f "
            "class_count=%d property_count=%d prefix_count=%d",
            PipelineEventType.RUN_LOADED,
            context.job.event_id,
            context.job.slug,
            partition_uri,
            duration.total_seconds(),
            metrics.class_count,
            metrics.property_count,
            len(metrics.prefixes),
        )

    def log_run_failed(
        self,
        context: PipelineRunContext,
        stage: PipelineStage,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed run with its failing stage and error category."""
        log_error(
            logger,
            "[%s] event_id=%s repo_slug=%s stage=%s duration_seconds=%.3f "
            "error_type=%s error_category=%s error_message=%s",
            PipelineEventType.RUN_FAILED,
            context.job.event_id,
            context.job.slug,
            stage,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_violations(
        self, context: PipelineRunContext, violations: typ.Sequence[str]
    ) -> None:
        """Log each conformance violation of a rejected document."""
        for index, message in enumerate(violations, start=1):
            log_warning(
                logger,
                "[%s] event_id=%s index=%d total=%d message=%s",
                PipelineEventType.VALIDATION_VIOLATION,
                context.job.event_id,
                index,
                len(violations),
                message,
            )

    def log_ledger_write_failed(
        self, context: PipelineRunContext, error: BaseException
    ) -> None:
        """Log a failure to record the failed status of a run."""
        log_error(
            logger,
            "[%s] event_id=%s error_type=%s error_category=%s",
            PipelineEventType.LEDGER_WRITE_FAILED,
            context.job.event_id,
            type(error).__name__,
            categorize_error(error),
            exc_info=error,
        )
