"""Assemble ingestion pipelines from configuration.

Usage
-----
Run a pipeline with resources scoped to one event loop::

    from ontohub.config import OntohubConfig
    from ontohub.ingestion.factory import open_pipeline

    async with open_pipeline(OntohubConfig.from_env()) as pipeline:
        await pipeline.run(job)

"""

from __future__ import annotations

import contextlib
import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from ontohub.github.client import GitHubContentClient, GitHubContentConfig
from ontohub.ingestion.fetch import DocumentFetcher
from ontohub.ingestion.index import MetricsIndexer
from ontohub.ingestion.parse import DocumentParser
from ontohub.ingestion.pipeline import IngestionPipeline, PipelineStages
from ontohub.ingestion.validate import ConformanceValidator
from ontohub.ingestion.write import GraphWriter
from ontohub.logging import get_logger, log_warning
from ontohub.registry.ledger import SqlEventLedger
from ontohub.store.memory import MemoryGraphStore
from ontohub.store.sparql import SparqlGraphStore, SparqlStoreConfig

if typ.TYPE_CHECKING:
    from ontohub.config import OntohubConfig
    from ontohub.github.client import GitHubContentSource
    from ontohub.registry.ledger import EventLedger
    from ontohub.store.protocol import GraphStore

__all__ = ["build_graph_store", "build_pipeline", "open_pipeline"]

logger = get_logger(__name__)


def build_graph_store(config: OntohubConfig) -> GraphStore:
    """Return the configured graph store.

    Without ``ONTOHUB_GRAPH_STORE_URL`` an in-memory store is returned and
    a warning is logged, since its content does not outlive the process.
    """
    store_config = SparqlStoreConfig.from_config(config)
    if store_config is None:
        log_warning(
            logger,
            "ONTOHUB_GRAPH_STORE_URL is not set; using an in-memory graph store",
        )
        return MemoryGraphStore()
    return SparqlGraphStore(store_config)


def build_pipeline(
    *,
    ledger: EventLedger,
    store: GraphStore,
    content_source: GitHubContentSource,
    validator: ConformanceValidator | None = None,
) -> IngestionPipeline:
    """Wire the five stages around the given collaborators."""
    stages = PipelineStages(
        fetcher=DocumentFetcher(content_source),
        parser=DocumentParser(),
        validator=validator or ConformanceValidator(),
        writer=GraphWriter(store),
        indexer=MetricsIndexer(ledger),
    )
    return IngestionPipeline(stages, ledger)


@contextlib.asynccontextmanager
async def open_pipeline(
    config: OntohubConfig,
    *,
    validator: ConformanceValidator | None = None,
) -> typ.AsyncIterator[IngestionPipeline]:
    """Yield a pipeline whose engine and HTTP clients close on exit."""
    engine = create_async_engine(config.database_url)
    github = GitHubContentClient(GitHubContentConfig.from_config(config))
    store = build_graph_store(config)
    try:
        yield build_pipeline(
            ledger=SqlEventLedger(async_sessionmaker(engine, expire_on_commit=False)),
            store=store,
            content_source=github,
            validator=validator or ConformanceValidator.from_path(config.shapes_path),
        )
    finally:
        await github.aclose()
        await store.aclose()
        await engine.dispose()
