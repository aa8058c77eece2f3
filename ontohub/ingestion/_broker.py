"""Dramatiq broker selection for the ingestion actor.

The webhook process and every worker must share one broker, so the broker
is always built from ``ONTOHUB_BROKER_URL`` (a ``redis://`` or
``rediss://`` URL, as served by Redis or Valkey). The actor module calls
``ensure_broker_configured`` before declaring ``run_ingestion_job``, because
Dramatiq binds an actor to whichever broker is global at that moment.

Under pytest the URL may be omitted; the test suite installs a
``StubBroker`` itself.
"""

from __future__ import annotations

import os
import sys
import threading
import typing as typ
from urllib.parse import urlsplit

import dramatiq

from ontohub.errors import ConfigurationError

if typ.TYPE_CHECKING:
    from dramatiq.broker import Broker

__all__ = ["BROKER_URL_SETTING", "build_broker", "ensure_broker_configured"]

BROKER_URL_SETTING = "ONTOHUB_BROKER_URL"
REDIS_SCHEMES = frozenset({"redis", "rediss", "unix"})

_lock = threading.Lock()
_configured = False


def build_broker(url: str) -> Broker:
    """Return a ``RedisBroker`` connected lazily to *url*.

    Raises
    ------
    ConfigurationError
        If *url* does not use a Redis scheme.

    """
    scheme = urlsplit(url).scheme.lower()
    if scheme not in REDIS_SCHEMES:
        choices = ", ".join(sorted(REDIS_SCHEMES))
        raise ConfigurationError.invalid_setting(
            BROKER_URL_SETTING, f"must use one of {choices}, got: {scheme!r}"
        )

    from dramatiq.brokers.redis import RedisBroker

    return RedisBroker(url=url)


def _under_pytest() -> bool:
    return "pytest" in sys.modules


def ensure_broker_configured(url: str | None = None) -> None:
    """Install the shared broker once per process.

    Parameters
    ----------
    url
        Broker URL. ``None`` reads ``ONTOHUB_BROKER_URL``.

    Raises
    ------
    ConfigurationError
        If no URL is available outside the test suite, or the URL is not a
        Redis URL.

    """
    global _configured

    with _lock:
        if _configured:
            return
        resolved = url or os.environ.get(BROKER_URL_SETTING, "").strip()
        if resolved:
            dramatiq.set_broker(build_broker(resolved))
        elif not _under_pytest():
            raise ConfigurationError.missing_setting(BROKER_URL_SETTING)
        _configured = True
