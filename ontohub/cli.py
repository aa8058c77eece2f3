"""Operator commands for keys, the registry database and ingestion runs."""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from ontohub.api.webhooks.resources import version_from_ref
from ontohub.common.slug import parse_repo_slug, repo_slug
from ontohub.config import DEFAULT_DATABASE_URL, OntohubConfig
from ontohub.errors import ConfigurationError, OntohubError
from ontohub.ingestion.factory import open_pipeline
from ontohub.ingestion.models import IngestionJob
from ontohub.registry.ledger import SqlEventLedger
from ontohub.registry.models import EventStatus
from ontohub.registry.service import RegistrationService
from ontohub.registry.storage import init_registry_storage
from ontohub.security.vault import SecretVault, generate_key

if typ.TYPE_CHECKING:
    from ontohub.registry.models import IngestionEventInfo

_DEFAULT_REF = "HEAD"


def _repository(value: str) -> tuple[str, str]:
    try:
        return parse_repo_slug(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _database_url(args: argparse.Namespace) -> str:
    return args.database_url or os.environ.get(
        "ONTOHUB_DATABASE_URL", DEFAULT_DATABASE_URL
    )


async def _init_db(database_url: str) -> None:
    engine = create_async_engine(database_url)
    try:
        await init_registry_storage(engine)
    finally:
        await engine.dispose()


async def _register(config: OntohubConfig, args: argparse.Namespace) -> str:
    engine = create_async_engine(config.database_url)
    try:
        service = RegistrationService(
            async_sessionmaker(engine, expire_on_commit=False),
            SecretVault(config.encryption_key),
        )
        owner, repo = args.repository
        registration = await service.register(
            owner,
            repo,
            registered_by=args.registered_by,
            secret=args.secret,
            webhook_id=args.webhook_id,
        )
    finally:
        await engine.dispose()
    return registration.id


async def _events(
    config: OntohubConfig, args: argparse.Namespace
) -> list[IngestionEventInfo]:
    engine = create_async_engine(config.database_url)
    try:
        service = RegistrationService(
            async_sessionmaker(engine, expire_on_commit=False),
            SecretVault(config.encryption_key),
        )
        owner, repo = args.repository
        return await service.list_events(owner, repo, limit=args.limit)
    finally:
        await engine.dispose()


async def _ingest(config: OntohubConfig, args: argparse.Namespace) -> IngestionEventInfo:
    engine = create_async_engine(config.database_url)
    try:
        ledger = SqlEventLedger(async_sessionmaker(engine, expire_on_commit=False))
        owner, repo = args.repository
        version = version_from_ref(args.ref)
        event_id = await ledger.create_event(
            owner=owner, repo=repo, git_ref=args.ref, version=version
        )
        job = IngestionJob(
            event_id=event_id,
            owner=owner,
            repo=repo,
            git_ref=args.ref,
            version=version,
        )
        async with open_pipeline(config) as pipeline:
            await pipeline.run(job)
        return await ledger.get_event(event_id)
    finally:
        await engine.dispose()


def _format_event(event: IngestionEventInfo) -> str:
    line = (
        f"{event.id}  {event.status.value:<7}  {event.git_ref}  "
        f"{event.created_at.isoformat()}"
    )
    if event.metrics is not None:
        line += (
            f"  classes={event.metrics.class_count}"
            f" properties={event.metrics.property_count}"
        )
    return line


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ontohub", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "generate-key", help="Print a new ONTOHUB_WEBHOOK_ENCRYPTION_KEY value"
    )

    init_db = commands.add_parser("init-db", help="Create the registry tables")
    init_db.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL (defaults to ONTOHUB_DATABASE_URL)",
    )

    register = commands.add_parser("register", help="Register a repository")
    register.add_argument("repository", type=_repository, help="owner/repo")
    register.add_argument("--secret", required=True, help="Webhook secret")
    register.add_argument(
        "--registered-by", required=True, help="User linking the repository"
    )
    register.add_argument("--webhook-id", default=None, help="GitHub hook id")

    events = commands.add_parser("events", help="List recent ingestion events")
    events.add_argument("repository", type=_repository, help="owner/repo")
    events.add_argument("--limit", type=int, default=20)

    ingest = commands.add_parser(
        "ingest",
        help="Queue and run one ingestion; needs ONTOHUB_GRAPH_STORE_URL",
    )
    ingest.add_argument("repository", type=_repository, help="owner/repo")
    ingest.add_argument("--ref", default=_DEFAULT_REF, help="Git ref to ingest")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run an operator command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the command fails.

    """
    args = _build_parser().parse_args(argv)

    if args.command == "generate-key":
        print(generate_key())
        return 0

    try:
        if args.command == "init-db":
            database_url = _database_url(args)
            asyncio.run(_init_db(database_url))
            print(f"registry tables ready at {database_url}")
            return 0

        config = OntohubConfig.from_env()
        if args.command == "register":
            registration_id = asyncio.run(_register(config, args))
            print(f"registered {repo_slug(*args.repository)} as {registration_id}")
            return 0

        if args.command == "events":
            for event in asyncio.run(_events(config, args)):
                print(_format_event(event))
            return 0

        if config.graph_store_url is None:
            # The in-memory store would be discarded when the command exits.
            raise ConfigurationError.invalid_setting(
                "ONTOHUB_GRAPH_STORE_URL", "is required for ingest"
            )
        event = asyncio.run(_ingest(config, args))
    except OntohubError as exc:
        print(f"error: {exc}")
        return 1

    print(_format_event(event))
    return 0 if event.status is EventStatus.LOADED else 1


if __name__ == "__main__":
    raise SystemExit(main())
