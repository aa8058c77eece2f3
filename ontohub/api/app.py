"""Application factory for the Ontohub Falcon ASGI application.

Usage
-----
Create a health-only app::

    app = create_app()

Create an app that accepts webhook deliveries::

    from ontohub.api.app import AppDependencies, create_app

    deps = AppDependencies(ledger=ledger, vault=vault, dispatcher=dispatcher)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from ontohub.api.errors import register_error_handlers
from ontohub.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from ontohub.api.middleware import AsyncCloser
    from ontohub.ingestion.dispatch import Dispatcher
    from ontohub.registry.ledger import EventLedger
    from ontohub.security.vault import SecretVault

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators of the webhook endpoint.

    Attributes
    ----------
    ledger
        Event ledger used for secret lookup and queued events.
    vault
        Vault decrypting stored webhook secrets.
    dispatcher
        Dispatcher that runs accepted jobs.
    closers
        Callables releasing long-lived resources on shutdown.

    """

    ledger: EventLedger
    vault: SecretVault
    dispatcher: Dispatcher
    closers: tuple[AsyncCloser, ...] = ()


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    When *dependencies* is given the app serves
    ``POST /webhooks/{owner}/{repo}`` and drains the dispatcher on
    shutdown. Otherwise only ``/health`` and ``/ready`` are registered.
    """
    middleware: list[object] = []
    if dependencies is not None:
        from ontohub.api.middleware import IngestionLifespan

        middleware.append(
            IngestionLifespan(dependencies.dispatcher, closers=dependencies.closers)
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready", ReadyResource(ingestion_enabled=dependencies is not None)
    )

    if dependencies is not None:
        from ontohub.api.webhooks.resources import WebhookResource

        app.add_route(
            "/webhooks/{owner}/{repo}",
            WebhookResource(
                ledger=dependencies.ledger,
                vault=dependencies.vault,
                dispatcher=dependencies.dispatcher,
            ),
        )

    register_error_handlers(app)
    return app
