"""In-process graph store backed by an rdflib ``Dataset``."""

from __future__ import annotations

import asyncio

from rdflib import Dataset, Graph, URIRef


class MemoryGraphStore:
    """``GraphStore`` kept in memory, for tests and local runs.

    A lock makes each replace appear atomic to concurrent readers on the
    same event loop.
    """

    def __init__(self) -> None:
        """Create an empty dataset."""
        self._dataset = Dataset()
        self._lock = asyncio.Lock()

    async def replace_graph(self, graph_uri: str, graph: Graph) -> None:
        """Drop *graph_uri* and load every triple of *graph* into it."""
        identifier = URIRef(graph_uri)
        async with self._lock:
            self._dataset.remove_graph(identifier)
            target = self._dataset.graph(identifier)
            for triple in graph:
                target.add(triple)

    async def read_graph(self, graph_uri: str) -> Graph:
        """Return a copy of the triples stored under *graph_uri*."""
        copy = Graph()
        async with self._lock:
            for triple in self._dataset.graph(URIRef(graph_uri)):
                copy.add(triple)
        return copy

    def graph_uris(self) -> list[str]:
        """Return the identifiers of every non-empty named graph, sorted."""
        return sorted(
            str(graph.identifier)
            for graph in self._dataset.graphs()
            if isinstance(graph.identifier, URIRef) and len(graph) > 0
        )

    async def aclose(self) -> None:
        """Nothing to release."""
