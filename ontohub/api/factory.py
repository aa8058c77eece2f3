"""Build the webhook application's dependencies from configuration.

Usage
-----
Build dependencies for the API layer::

    from ontohub.api.factory import build_app_dependencies

    deps = build_app_dependencies(OntohubConfig.from_env())

"""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from ontohub.api.app import AppDependencies
from ontohub.config import DispatchMode
from ontohub.github.client import GitHubContentClient, GitHubContentConfig
from ontohub.ingestion._broker import ensure_broker_configured
from ontohub.ingestion.dispatch import BackgroundDispatcher, DramatiqDispatcher
from ontohub.ingestion.factory import build_graph_store, build_pipeline
from ontohub.ingestion.validate import ConformanceValidator
from ontohub.registry.ledger import SqlEventLedger
from ontohub.security.vault import SecretVault

if typ.TYPE_CHECKING:
    from ontohub.api.middleware import AsyncCloser
    from ontohub.config import OntohubConfig
    from ontohub.ingestion.dispatch import Dispatcher

__all__ = ["build_app_dependencies"]


def build_app_dependencies(config: OntohubConfig) -> AppDependencies:
    """Assemble ledger, vault and dispatcher for the webhook endpoint.

    In ``background`` mode the pipeline runs in this process and its HTTP
    clients are closed on shutdown. In ``dramatiq`` mode only the ledger and
    the shared broker are needed here; workers build their own pipelines.

    Raises
    ------
    ConfigurationError
        If the Dramatiq broker URL is unusable.

    """
    engine = create_async_engine(config.database_url)
    ledger = SqlEventLedger(async_sessionmaker(engine, expire_on_commit=False))
    vault = SecretVault(config.encryption_key)

    dispatcher: Dispatcher
    closers: list[AsyncCloser] = []
    if config.dispatch_mode is DispatchMode.DRAMATIQ:
        ensure_broker_configured(config.broker_url)
        dispatcher = DramatiqDispatcher()
    else:
        github = GitHubContentClient(GitHubContentConfig.from_config(config))
        store = build_graph_store(config)
        pipeline = build_pipeline(
            ledger=ledger,
            store=store,
            content_source=github,
            validator=ConformanceValidator.from_path(config.shapes_path),
        )
        dispatcher = BackgroundDispatcher(
            pipeline, max_concurrency=config.max_concurrent_ingestions
        )
        closers.extend((github.aclose, store.aclose))
    closers.append(engine.dispose)

    return AppDependencies(
        ledger=ledger,
        vault=vault,
        dispatcher=dispatcher,
        closers=tuple(closers),
    )
