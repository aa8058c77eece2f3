"""Shared semantic store access."""

from __future__ import annotations

from .errors import GraphStoreError
from .memory import MemoryGraphStore
from .protocol import GraphStore
from .sparql import SparqlGraphStore, SparqlStoreConfig
from .vocab import PARTITION_SCHEME, partition_uri

__all__ = [
    "PARTITION_SCHEME",
    "GraphStore",
    "GraphStoreError",
    "MemoryGraphStore",
    "SparqlGraphStore",
    "SparqlStoreConfig",
    "partition_uri",
]
