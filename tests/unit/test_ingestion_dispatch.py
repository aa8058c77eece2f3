"""Unit tests for background and Dramatiq dispatch."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from ontohub.ingestion import dispatch
from ontohub.ingestion.actor import run_ingestion_job
from ontohub.ingestion.dispatch import BackgroundDispatcher, DramatiqDispatcher
from ontohub.ingestion.models import IngestionJob
from tests.helpers.fakes import RecordingLogger

if typ.TYPE_CHECKING:
    from ontohub.ingestion.pipeline import IngestionPipeline


def _job(event_id: str, *, version: str = "v1", repo: str = "pizza") -> IngestionJob:
    return IngestionJob(
        event_id=event_id, owner="acme", repo=repo, git_ref=version, version=version
    )


class _GatedPipeline:
    """Pipeline double whose runs block until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.active = 0
        self.max_active = 0
        self.started: list[str] = []
        self.finished: list[str] = []

    async def run(self, job: IngestionJob) -> None:
        self.started.append(job.event_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.release.wait()
        finally:
            self.active -= 1
            self.finished.append(job.event_id)


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


def _dispatcher(pipeline: object, max_concurrency: int) -> BackgroundDispatcher:
    return BackgroundDispatcher(
        typ.cast("IngestionPipeline", pipeline), max_concurrency=max_concurrency
    )


class TestBackgroundDispatcher:
    """BackgroundDispatcher scheduling."""

    def test_rejects_non_positive_concurrency(self) -> None:
        """At least one concurrent run is required."""
        with pytest.raises(ValueError, match="max_concurrency"):
            _dispatcher(_GatedPipeline(), 0)

    @pytest.mark.asyncio
    async def test_dispatch_returns_before_run_completes(self) -> None:
        """dispatch() schedules the run without awaiting it."""
        pipeline = _GatedPipeline()
        dispatcher = _dispatcher(pipeline, 2)

        await dispatcher.dispatch(_job("e-1"))
        await _settle()

        assert pipeline.started == ["e-1"]
        assert pipeline.finished == []
        assert dispatcher.pending == 1

        pipeline.release.set()
        await dispatcher.drain()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        """No more than max_concurrency runs execute at once."""
        pipeline = _GatedPipeline()
        dispatcher = _dispatcher(pipeline, 2)

        for n in range(5):
            await dispatcher.dispatch(_job(f"e-{n}", version=f"v{n}"))
        await _settle()

        assert pipeline.active == 2
        pipeline.release.set()
        await dispatcher.drain()

        assert pipeline.max_active == 2
        assert sorted(pipeline.finished) == [f"e-{n}" for n in range(5)]

    @pytest.mark.asyncio
    async def test_same_partition_runs_in_dispatch_order(self) -> None:
        """Runs for one partition never overlap and keep their order."""
        pipeline = _GatedPipeline()
        dispatcher = _dispatcher(pipeline, 4)

        for n in range(3):
            await dispatcher.dispatch(_job(f"e-{n}"))
        await _settle()

        assert pipeline.started == ["e-0"], "later runs must wait for the partition"
        pipeline.release.set()
        await dispatcher.drain()

        assert pipeline.max_active == 1
        assert pipeline.finished == ["e-0", "e-1", "e-2"]

    @pytest.mark.asyncio
    async def test_other_partitions_are_not_blocked(self) -> None:
        """A busy partition does not hold back a different one."""
        pipeline = _GatedPipeline()
        dispatcher = _dispatcher(pipeline, 4)

        await dispatcher.dispatch(_job("e-1", repo="pizza"))
        await dispatcher.dispatch(_job("e-2", repo="pizza"))
        await dispatcher.dispatch(_job("e-3", repo="pasta"))
        await _settle()

        assert pipeline.started == ["e-1", "e-3"]
        pipeline.release.set()
        await dispatcher.drain()

    @pytest.mark.asyncio
    async def test_crashed_task_is_logged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An exception escaping a run is logged, not lost."""
        recorder = RecordingLogger()
        monkeypatch.setattr(dispatch, "logger", recorder)

        class _CrashingPipeline:
            async def run(self, job: IngestionJob) -> None:
                msg = "pipeline bug"
                raise RuntimeError(msg)

        dispatcher = _dispatcher(_CrashingPipeline(), 1)
        await dispatcher.dispatch(_job("e-9"))
        await dispatcher.drain()

        (call,) = recorder.calls
        assert call.level == "ERROR"
        assert "ingestion:e-9" in call.message
        assert isinstance(call.exc_info, RuntimeError)


class _RecordingActor:
    def __init__(self) -> None:
        self.sent: list[dict[str, typ.Any]] = []

    def send(self, **kwargs: typ.Any) -> None:
        self.sent.append(kwargs)


class TestDramatiqDispatcher:
    """DramatiqDispatcher message shape."""

    @pytest.mark.asyncio
    async def test_sends_job_fields(self) -> None:
        """Every job field travels as a keyword argument."""
        actor = _RecordingActor()
        job = IngestionJob(
            event_id="e-1",
            owner="acme",
            repo="pizza",
            git_ref="refs/tags/v1",
            version="v1",
            delivery_id="d-1",
        )

        await DramatiqDispatcher(actor).dispatch(job)

        assert actor.sent == [
            {
                "event_id": "e-1",
                "owner": "acme",
                "repo": "pizza",
                "git_ref": "refs/tags/v1",
                "version": "v1",
                "delivery_id": "d-1",
            }
        ]

    @pytest.mark.asyncio
    async def test_defaults_to_ingestion_actor(self) -> None:
        """Without an explicit actor the message lands on the actor's queue."""
        broker = run_ingestion_job.broker
        broker.flush_all()

        await DramatiqDispatcher().dispatch(_job("e-1"))

        assert broker.queues[run_ingestion_job.queue_name].qsize() == 1
        broker.flush_all()

    @pytest.mark.asyncio
    async def test_drain_is_a_no_op(self) -> None:
        """Nothing is awaited for remote workers."""
        await DramatiqDispatcher(_RecordingActor()).drain()
