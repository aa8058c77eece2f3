"""Fire-and-forget dispatch of accepted deliveries to the pipeline.

The webhook handler hands a job to a ``Dispatcher`` and responds without
waiting for the pipeline. Two implementations exist:

``BackgroundDispatcher``
    Runs the pipeline as asyncio tasks in the serving process. A semaphore
    bounds the number of concurrent runs and a per-partition lock makes
    runs for the same ``(owner, repo, version)`` execute in dispatch order,
    so the last accepted delivery is the one whose content remains.
``DramatiqDispatcher``
    Sends the job to the ``run_ingestion_job`` Dramatiq actor so a separate
    worker process performs the run.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from ontohub.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    from ontohub.ingestion.models import IngestionJob
    from ontohub.ingestion.pipeline import IngestionPipeline

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 4

type PartitionKey = tuple[str, str, str]


class Dispatcher(typ.Protocol):
    """Hands accepted jobs to whatever executes the pipeline."""

    async def dispatch(self, job: IngestionJob) -> None:
        """Schedule *job* and return without waiting for it to run."""
        ...

    async def drain(self) -> None:
        """Wait for work scheduled in this process to finish."""
        ...


@dataclasses.dataclass(slots=True)
class _PartitionLock:
    lock: asyncio.Lock = dataclasses.field(default_factory=asyncio.Lock)
    holders: int = 0


class BackgroundDispatcher:
    """Run pipeline jobs as supervised asyncio tasks.

    Parameters
    ----------
    pipeline
        Pipeline executed for every job.
    max_concurrency
        Upper bound on runs executing at the same time.

    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """Configure the dispatcher with a pipeline and concurrency bound."""
        if max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {max_concurrency}"
            raise ValueError(msg)
        self._pipeline = pipeline
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._partitions: dict[PartitionKey, _PartitionLock] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Return the number of dispatched jobs that have not finished."""
        return len(self._tasks)

    async def dispatch(self, job: IngestionJob) -> None:
        """Start a task for *job*; the task is retained until it completes."""
        task = asyncio.create_task(self._run(job), name=f"ingestion:{job.event_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    async def drain(self) -> None:
        """Wait until every dispatched task, including late ones, is done."""
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

    async def _run(self, job: IngestionJob) -> None:
        key = job.partition_key
        entry = self._partitions.setdefault(key, _PartitionLock())
        entry.holders += 1
        try:
            # Take the partition lock first so queued runs for a busy
            # partition do not occupy concurrency slots.
            async with entry.lock, self._semaphore:
                await self._pipeline.run(job)
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._partitions[key]

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_exception(logger, f"Ingestion task {task.get_name()} crashed", exc)


class DramatiqDispatcher:
    """Send pipeline jobs to the ``run_ingestion_job`` Dramatiq actor.

    Sending happens on a worker thread because brokers use blocking
    clients. A send failure propagates to the caller; the queued event
    stays in the ledger as the audit record of the attempt.
    """

    def __init__(self, actor: typ.Any | None = None) -> None:  # noqa: ANN401 - dramatiq actors are untyped
        """Bind the dispatcher to *actor*, defaulting to the ingestion actor."""
        if actor is None:
            from ontohub.ingestion.actor import run_ingestion_job

            actor = run_ingestion_job
        self._actor = actor

    async def dispatch(self, job: IngestionJob) -> None:
        """Enqueue *job* on the broker."""
        await asyncio.to_thread(
            self._actor.send,
            event_id=job.event_id,
            owner=job.owner,
            repo=job.repo,
            git_ref=job.git_ref,
            version=job.version,
            delivery_id=job.delivery_id,
        )

    async def drain(self) -> None:
        """Nothing to wait for; workers run in other processes."""
