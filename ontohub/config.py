"""Process configuration loaded from ``ONTOHUB_*`` environment variables.

Usage
-----
Load the configuration once at startup:

>>> import os
>>> os.environ["ONTOHUB_WEBHOOK_ENCRYPTION_KEY"] = "00" * 32
>>> config = OntohubConfig.from_env()
>>> config.max_concurrent_ingestions
4

Malformed values raise ``ConfigurationError`` naming the offending
variable, so a misconfigured process fails before it accepts traffic.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import os
from pathlib import Path

from ontohub.errors import ConfigurationError
from ontohub.security.vault import parse_key

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///ontohub.db"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITHUB_RAW_URL = "https://raw.githubusercontent.com"


class DispatchMode(enum.StrEnum):
    """Where accepted deliveries are executed."""

    BACKGROUND = "background"
    DRAMATIQ = "dramatiq"


def _env(name: str) -> str | None:
    raw = os.environ.get(name, "").strip()
    return raw or None


def _positive_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_setting(
            name, f"must be an integer, got: {raw!r}"
        ) from exc
    if value < 1:
        raise ConfigurationError.invalid_setting(name, f"must be positive, got: {value}")
    return value


def _positive_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_setting(
            name, f"must be a number, got: {raw!r}"
        ) from exc
    if value <= 0:
        raise ConfigurationError.invalid_setting(name, f"must be positive, got: {value}")
    return value


def _dispatch_mode(name: str) -> DispatchMode:
    raw = (_env(name) or DispatchMode.BACKGROUND.value).lower()
    try:
        return DispatchMode(raw)
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in DispatchMode)
        raise ConfigurationError.invalid_setting(
            name, f"must be one of {choices}, got: {raw!r}"
        ) from exc


@dc.dataclass(frozen=True, slots=True)
class OntohubConfig:
    """Settings for the webhook service and ingestion workers.

    Attributes
    ----------
    encryption_key
        Parsed 32-byte AES key for webhook secrets. Never logged.
    database_url
        SQLAlchemy async URL of the registry database.
    graph_store_url
        Graph Store Protocol endpoint. ``None`` selects the in-memory
        store, which is only suitable for local runs.
    graph_store_user, graph_store_password
        Optional basic-auth credentials for the graph store.
    github_token
        Optional bearer token for private repositories.
    github_api_url, github_raw_url
        Base URLs of the GitHub REST API and raw-content host.
    http_timeout_s
        Timeout applied to every outbound HTTP call.
    max_concurrent_ingestions
        Bound on pipeline runs executing at once in one process.
    shapes_path
        Optional SHACL shapes file appended to the baseline shapes.
    dispatch_mode
        Whether runs execute in-process or on Dramatiq workers.
    broker_url
        Redis URL of the Dramatiq broker shared by the webhook process
        and its workers. Required in ``dramatiq`` mode. Never logged.

    """

    encryption_key: bytes = dc.field(repr=False)
    database_url: str = DEFAULT_DATABASE_URL
    graph_store_url: str | None = None
    graph_store_user: str | None = None
    graph_store_password: str | None = dc.field(default=None, repr=False)
    github_token: str | None = dc.field(default=None, repr=False)
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_raw_url: str = DEFAULT_GITHUB_RAW_URL
    http_timeout_s: float = 20.0
    max_concurrent_ingestions: int = 4
    shapes_path: Path | None = None
    dispatch_mode: DispatchMode = DispatchMode.BACKGROUND
    broker_url: str | None = dc.field(default=None, repr=False)

    @classmethod
    def from_env(cls) -> OntohubConfig:
        """Create configuration from environment variables.

        Reads ``ONTOHUB_WEBHOOK_ENCRYPTION_KEY`` (required, 64 hex
        characters), ``ONTOHUB_DATABASE_URL``, ``ONTOHUB_GRAPH_STORE_URL``,
        ``ONTOHUB_GRAPH_STORE_USER``, ``ONTOHUB_GRAPH_STORE_PASSWORD``,
        ``ONTOHUB_GITHUB_TOKEN``, ``ONTOHUB_GITHUB_API_URL``,
        ``ONTOHUB_GITHUB_RAW_URL``, ``ONTOHUB_HTTP_TIMEOUT_SECONDS``,
        ``ONTOHUB_MAX_CONCURRENT_INGESTIONS``, ``ONTOHUB_SHAPES_PATH``,
        ``ONTOHUB_DISPATCH`` and ``ONTOHUB_BROKER_URL``.

        Raises
        ------
        ConfigurationError
            If the key is missing or malformed, a numeric or enumerated
            setting cannot be parsed, or ``dramatiq`` dispatch lacks a
            graph store or broker URL.

        """
        raw_key = _env("ONTOHUB_WEBHOOK_ENCRYPTION_KEY")
        if raw_key is None:
            raise ConfigurationError.missing_setting("ONTOHUB_WEBHOOK_ENCRYPTION_KEY")

        shapes_path: Path | None = None
        raw_shapes = _env("ONTOHUB_SHAPES_PATH")
        if raw_shapes is not None:
            shapes_path = Path(raw_shapes)

        dispatch_mode = _dispatch_mode("ONTOHUB_DISPATCH")
        graph_store_url = _env("ONTOHUB_GRAPH_STORE_URL")
        broker_url = _env("ONTOHUB_BROKER_URL")
        if dispatch_mode is DispatchMode.DRAMATIQ:
            # Each worker message opens its own pipeline, so an in-memory
            # store would discard the partition as soon as the run ends.
            if graph_store_url is None:
                raise ConfigurationError.invalid_setting(
                    "ONTOHUB_GRAPH_STORE_URL",
                    "is required when ONTOHUB_DISPATCH=dramatiq",
                )
            if broker_url is None:
                raise ConfigurationError.invalid_setting(
                    "ONTOHUB_BROKER_URL", "is required when ONTOHUB_DISPATCH=dramatiq"
                )

        return cls(
            encryption_key=parse_key(raw_key),
            database_url=_env("ONTOHUB_DATABASE_URL") or DEFAULT_DATABASE_URL,
            graph_store_url=graph_store_url,
            graph_store_user=_env("ONTOHUB_GRAPH_STORE_USER"),
            graph_store_password=_env("ONTOHUB_GRAPH_STORE_PASSWORD"),
            github_token=_env("ONTOHUB_GITHUB_TOKEN"),
            github_api_url=_env("ONTOHUB_GITHUB_API_URL") or DEFAULT_GITHUB_API_URL,
            github_raw_url=_env("ONTOHUB_GITHUB_RAW_URL") or DEFAULT_GITHUB_RAW_URL,
            http_timeout_s=_positive_float("ONTOHUB_HTTP_TIMEOUT_SECONDS", 20.0),
            max_concurrent_ingestions=_positive_int(
                "ONTOHUB_MAX_CONCURRENT_INGESTIONS", 4
            ),
            shapes_path=shapes_path,
            dispatch_mode=dispatch_mode,
            broker_url=broker_url,
        )
