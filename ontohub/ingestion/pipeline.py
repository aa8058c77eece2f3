"""Stage-sequenced ingestion pipeline.

A run walks one queued event through fetch, parse, validate, write and
index. The first stage error ends the run as failed; nothing after the
failing stage executes, so a document that does not parse or conform never
reaches the store. The event is marked loaded only after the index stage
has committed its metrics.

``IngestionPipeline.run`` is the top-level boundary of a detached task. It
always returns a ``PipelineOutcome`` and never raises ``Exception``.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from ontohub.common.time import utcnow
from ontohub.ingestion.errors import ConformanceError
from ontohub.ingestion.models import PipelineOutcome, PipelineStage
from ontohub.ingestion.observability import PipelineEventLogger, PipelineRunContext
from ontohub.registry.models import EventStatus

if typ.TYPE_CHECKING:
    from ontohub.ingestion.fetch import DocumentFetcher
    from ontohub.ingestion.index import MetricsIndexer
    from ontohub.ingestion.models import IngestionJob
    from ontohub.ingestion.parse import DocumentParser
    from ontohub.ingestion.validate import ConformanceValidator
    from ontohub.ingestion.write import GraphWriter
    from ontohub.registry.ledger import EventLedger


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineStages:
    """The five stage implementations a pipeline runs in order."""

    fetcher: DocumentFetcher
    parser: DocumentParser
    validator: ConformanceValidator
    writer: GraphWriter
    indexer: MetricsIndexer


class IngestionPipeline:
    """Run queued ingestion events to a terminal status.

    Parameters
    ----------
    stages
        Stage implementations.
    ledger
        Ledger receiving the terminal status of each run.
    event_logger
        Structured logger; a default instance is used when omitted.

    """

    def __init__(
        self,
        stages: PipelineStages,
        ledger: EventLedger,
        *,
        event_logger: PipelineEventLogger | None = None,
    ) -> None:
        """Configure the pipeline with its stages and ledger."""
        self._stages = stages
        self._ledger = ledger
        self._event_logger = event_logger or PipelineEventLogger()

    async def run(self, job: IngestionJob) -> PipelineOutcome:
        """Process *job* and record ``loaded`` or ``failed`` on its event."""
        context = PipelineRunContext(job=job, started_at=utcnow())
        self._event_logger.log_run_started(context)

        stages = self._stages
        stage = PipelineStage.FETCHING
        try:
            self._enter(context, stage)
            fetched = await stages.fetcher.fetch(job.owner, job.repo, job.version)

            stage = PipelineStage.PARSING
            self._enter(context, stage)
            document = await stages.parser.parse(fetched)

            stage = PipelineStage.VALIDATING
            self._enter(context, stage)
            await stages.validator.ensure_conforms(document)

            stage = PipelineStage.WRITING
            self._enter(context, stage)
            uri = await stages.writer.write(job.owner, job.repo, job.version, document)

            stage = PipelineStage.INDEXING
            self._enter(context, stage)
            metrics = await stages.indexer.index(job.event_id, document, uri)

            await self._ledger.mark_loaded(job.event_id)
        except Exception as exc:  # noqa: BLE001 - every stage error ends the run as failed
            return await self._fail(context, stage, exc)

        self._event_logger.log_run_loaded(
            context, uri, metrics, utcnow() - context.started_at
        )
        return PipelineOutcome(
            event_id=job.event_id,
            status=EventStatus.LOADED,
            stage=PipelineStage.LOADED,
            partition_uri=uri,
            metrics=metrics,
        )

    def _enter(self, context: PipelineRunContext, stage: PipelineStage) -> None:
        self._event_logger.log_stage_started(context, stage)

    async def _fail(
        self,
        context: PipelineRunContext,
        stage: PipelineStage,
        error: Exception,
    ) -> PipelineOutcome:
        if isinstance(error, ConformanceError):
            self._event_logger.log_violations(context, error.violations)
        self._event_logger.log_run_failed(
            context, stage, error, utcnow() - context.started_at
        )
        try:
            await self._ledger.mark_failed(context.job.event_id)
        except Exception as ledger_error:  # noqa: BLE001 - the run is already over
            self._event_logger.log_ledger_write_failed(context, ledger_error)

        return PipelineOutcome(
            event_id=context.job.event_id,
            status=EventStatus.FAILED,
            stage=stage,
            error=error,
        )
