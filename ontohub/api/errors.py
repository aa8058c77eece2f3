"""API exceptions and the Falcon handlers translating domain errors.

Usage
-----
Register the handlers on the Falcon app::

    from ontohub.api.errors import register_error_handlers

    register_error_handlers(app)

Every handler answers with a ``{"title", "description"}`` JSON body.
"""

from __future__ import annotations

import typing as typ

import falcon

from ontohub.errors import AuthenticationError, NotFoundError
from ontohub.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "InvalidInputError",
    "handle_authentication_failed",
    "handle_invalid_input",
    "handle_not_found",
    "register_error_handlers",
]

logger = get_logger(__name__)


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_not_found(
    _req: Request,
    resp: Response,
    ex: NotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``NotFoundError`` and its subclasses to an HTTP 404 JSON response."""
    resp.status = falcon.HTTP_404
    resp.media = {
        "title": "Not found",
        "description": str(ex),
    }


async def handle_authentication_failed(
    req: Request,
    resp: Response,
    ex: AuthenticationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``AuthenticationError`` to an HTTP 401 JSON response.

    The specific reason is logged but not returned, so callers cannot tell
    a bad signature from an undecryptable stored secret.
    """
    log_warning(logger, "Rejected %s %s: %s", req.method, req.path, ex)
    resp.status = falcon.HTTP_401
    resp.media = {
        "title": "Unauthorized",
        "description": "The webhook delivery could not be authenticated.",
    }


def register_error_handlers(app: App) -> None:
    """Install the domain error handlers on *app*."""
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(NotFoundError, handle_not_found)
    app.add_error_handler(AuthenticationError, handle_authentication_failed)
