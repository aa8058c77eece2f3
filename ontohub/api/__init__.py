"""Falcon ASGI application serving the webhook ingress and health probes."""

from __future__ import annotations

from .app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
