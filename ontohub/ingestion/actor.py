"""Dramatiq actor running ingestion pipelines on worker processes.

Used when ``ONTOHUB_DISPATCH=dramatiq``. The webhook process enqueues a
message per accepted delivery on the broker named by ``ONTOHUB_BROKER_URL``
and a worker started with ``dramatiq ontohub.ingestion.actor`` under the
same URL runs the pipeline.

Usage
-----
>>> run_ingestion_job.send(
...     event_id="550e8400-e29b-41d4-a716-446655440000",
...     owner="acme",
...     repo="ontology",
...     git_ref="refs/tags/v1.0.0",
...     version="v1.0.0",
... )

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq

from ontohub.config import OntohubConfig
from ontohub.ingestion._broker import ensure_broker_configured
from ontohub.ingestion.factory import open_pipeline
from ontohub.ingestion.models import IngestionJob
from ontohub.ingestion.validate import ConformanceValidator

if typ.TYPE_CHECKING:
    from ontohub.ingestion.models import PipelineOutcome

# The decorator below registers the actor with the current broker.
ensure_broker_configured()

# Parsed shapes are loop-independent and reused across messages; engines
# and HTTP clients are bound to the loop of a single ``asyncio.run`` call.
_CONFIG_CACHE: dict[str, OntohubConfig] = {}
_VALIDATOR_CACHE: dict[str, ConformanceValidator] = {}
_CACHE_LOCK = threading.Lock()


def _get_config() -> OntohubConfig:
    """Return the cached process configuration, loading it on first use."""
    with _CACHE_LOCK:
        if "config" not in _CONFIG_CACHE:
            _CONFIG_CACHE["config"] = OntohubConfig.from_env()
        return _CONFIG_CACHE["config"]


def _get_validator(config: OntohubConfig) -> ConformanceValidator:
    """Return the cached validator for the configured shapes path."""
    key = str(config.shapes_path or "")
    with _CACHE_LOCK:
        if key not in _VALIDATOR_CACHE:
            _VALIDATOR_CACHE[key] = ConformanceValidator.from_path(config.shapes_path)
        return _VALIDATOR_CACHE[key]


async def _run_job_async(
    config: OntohubConfig,
    job: IngestionJob,
    validator: ConformanceValidator,
) -> PipelineOutcome:
    async with open_pipeline(config, validator=validator) as pipeline:
        return await pipeline.run(job)


@dramatiq.actor(max_retries=0)
def run_ingestion_job(  # noqa: PLR0913 - mirrors the IngestionJob fields
    event_id: str,
    owner: str,
    repo: str,
    git_ref: str,
    version: str,
    delivery_id: str | None = None,
) -> str:
    """Run the pipeline for one queued event and return its terminal status.

    Retries are disabled: a failed run is recorded as failed and a new
    delivery from GitHub is the only way to try again.
    """
    config = _get_config()
    job = IngestionJob(
        event_id=event_id,
        owner=owner,
        repo=repo,
        git_ref=git_ref,
        version=version,
        delivery_id=delivery_id,
    )
    outcome = asyncio.run(_run_job_async(config, job, _get_validator(config)))
    return outcome.status.value
