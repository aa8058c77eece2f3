"""Lifespan middleware releasing ingestion resources on shutdown.

Usage
-----
Register the middleware when creating the Falcon app::

    lifespan = IngestionLifespan(dispatcher, closers=(github.aclose,))
    app = falcon.asgi.App(middleware=[lifespan])

"""

from __future__ import annotations

import typing as typ

from ontohub.logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    from ontohub.ingestion.dispatch import Dispatcher

__all__ = ["AsyncCloser", "IngestionLifespan"]

logger = get_logger(__name__)

type AsyncCloser = typ.Callable[[], typ.Awaitable[None]]


class IngestionLifespan:
    """Falcon middleware draining dispatched work when the server stops.

    Pipeline runs still in flight at shutdown are awaited before the HTTP
    clients and database engine they use are closed.

    Parameters
    ----------
    dispatcher
        Dispatcher whose outstanding work is drained.
    closers
        Callables invoked in order after draining.

    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        closers: typ.Sequence[AsyncCloser] = (),
    ) -> None:
        """Initialize the middleware with a dispatcher and closers."""
        self._dispatcher = dispatcher
        self._closers = tuple(closers)

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Drain the dispatcher, then close resources.

        A failing closer is logged and does not prevent the others from
        running.
        """
        log_info(logger, "Draining ingestion work before shutdown")
        await self._dispatcher.drain()
        for closer in self._closers:
            try:
                await closer()
            except Exception as exc:  # noqa: BLE001 - keep closing the rest
                log_exception(logger, "Failed to release resource on shutdown", exc)
