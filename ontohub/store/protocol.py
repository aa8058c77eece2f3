"""Interface of the shared graph store."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from rdflib import Graph


class GraphStore(typ.Protocol):
    """Named-graph store with atomic replace semantics."""

    async def replace_graph(self, graph_uri: str, graph: Graph) -> None:
        """Replace the whole content of *graph_uri* with *graph*.

        Readers observe either the previous content or the new content,
        never a mix of both.
        """
        ...

    async def read_graph(self, graph_uri: str) -> Graph:
        """Return the content of *graph_uri*, empty if it does not exist."""
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the store."""
        ...
