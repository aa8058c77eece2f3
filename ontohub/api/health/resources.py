"""Health probe resources.

``/health`` reports liveness. ``/ready`` reports whether the ingestion
endpoints are mounted: a process started without an encryption key only
serves the probes and reports ``degraded``.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe.

    Parameters
    ----------
    ingestion_enabled
        Whether the webhook endpoint is mounted.

    """

    def __init__(self, *, ingestion_enabled: bool = True) -> None:
        """Record whether the process can accept deliveries."""
        self._ingestion_enabled = ingestion_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        status = "ready" if self._ingestion_enabled else "degraded"
        resp.media = {"status": status, "ingestion": self._ingestion_enabled}
        resp.status = HTTPStatus.OK
