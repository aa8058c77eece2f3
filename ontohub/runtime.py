"""Granian entrypoint for the webhook service.

Granian imports ``ontohub.runtime:create_app`` as a factory. With
``ONTOHUB_WEBHOOK_ENCRYPTION_KEY`` present the full ``OntohubConfig`` is
loaded and ``POST /webhooks/{owner}/{repo}`` is mounted. Without it the
process answers ``/health`` and a degraded ``/ready`` so an orchestrator can
schedule it while secrets are still being provisioned.

Listener settings are read by ``ServerSettings.from_env``:

``ONTOHUB_HOST``
    Interface to bind, ``0.0.0.0`` when unset.
``ONTOHUB_PORT``
    TCP port in 1-65535, ``8080`` when unset.
``ONTOHUB_LOG_LEVEL``
    femtologging level name, ``INFO`` when unset.

``python -m ontohub.runtime`` starts the server in the foreground.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from ontohub.errors import ConfigurationError
from ontohub.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from ontohub.api.app import AppDependencies

__all__ = ["ServerSettings", "create_app", "main"]

logger = get_logger(__name__)

APP_FACTORY = "ontohub.runtime:create_app"
PORT_RANGE = range(1, 65536)


def _parse_port(raw: str) -> int:
    """Return *raw* as a TCP port.

    Raises
    ------
    ConfigurationError
        If *raw* is not an integer inside ``PORT_RANGE``.

    """
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_setting(
            "ONTOHUB_PORT", f"must be an integer, got: {raw!r}"
        ) from exc
    if port not in PORT_RANGE:
        raise ConfigurationError.invalid_setting(
            "ONTOHUB_PORT",
            f"must be between {PORT_RANGE.start} and {PORT_RANGE.stop - 1}, "
            f"got: {port}",
        )
    return port


@dc.dataclass(frozen=True, slots=True)
class ServerSettings:
    """Where the HTTP listener binds and how verbosely it logs."""

    host: str = "0.0.0.0"  # noqa: S104 - containers publish every interface
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ServerSettings:
        """Read the listener settings from ``ONTOHUB_*`` variables.

        Raises
        ------
        ConfigurationError
            If ``ONTOHUB_PORT`` is not a valid port.

        """
        defaults = cls()
        return cls(
            host=os.environ.get("ONTOHUB_HOST") or defaults.host,
            port=_parse_port(os.environ.get("ONTOHUB_PORT") or str(defaults.port)),
            log_level=os.environ.get("ONTOHUB_LOG_LEVEL") or defaults.log_level,
        )


def _ingestion_dependencies() -> AppDependencies | None:
    """Build webhook dependencies, or ``None`` when no key is provisioned."""
    if not os.environ.get("ONTOHUB_WEBHOOK_ENCRYPTION_KEY", "").strip():
        log_warning(
            logger,
            "ONTOHUB_WEBHOOK_ENCRYPTION_KEY is unset; webhook ingestion disabled",
        )
        return None

    from ontohub.api.factory import build_app_dependencies
    from ontohub.config import OntohubConfig

    config = OntohubConfig.from_env()
    dependencies = build_app_dependencies(config)
    log_info(
        logger,
        "Webhook ingestion enabled (dispatch=%s, max_concurrent_ingestions=%d)",
        config.dispatch_mode,
        config.max_concurrent_ingestions,
    )
    return dependencies


def create_app() -> falcon.asgi.App:
    """Return the ASGI application for Granian.

    Raises
    ------
    SystemExit
        With status 1 when a key is present but the configuration built
        around it is invalid.

    """
    from ontohub.api.app import create_app as build_api

    try:
        dependencies = _ingestion_dependencies()
    except ConfigurationError as exc:
        log_error(logger, "Refusing to start: %s", exc)
        raise SystemExit(1) from exc
    return build_api(dependencies)


def main() -> None:
    """Serve ``create_app`` with Granian until interrupted."""
    from granian import Granian
    from granian.constants import Interfaces

    try:
        settings = ServerSettings.from_env()
    except ConfigurationError as exc:
        log_error(logger, "Refusing to start: %s", exc)
        raise SystemExit(1) from exc

    level, level_was_invalid = configure_logging(settings.log_level)
    if level_was_invalid:
        log_warning(
            logger, "Unknown ONTOHUB_LOG_LEVEL %r; using %s", settings.log_level, level
        )
    log_info(
        logger,
        "Listening on %s:%d at log level %s",
        settings.host,
        settings.port,
        level,
    )

    Granian(
        APP_FACTORY,
        address=settings.host,
        port=settings.port,
        interface=Interfaces.ASGI,
        factory=True,
    ).serve()


if __name__ == "__main__":
    main()
