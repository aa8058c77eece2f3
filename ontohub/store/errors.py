"""Graph store errors."""

from __future__ import annotations

from ontohub.errors import UpstreamError


class GraphStoreError(UpstreamError):
    """Raised when the graph store rejects a request or cannot be reached."""

    @classmethod
    def http_error(cls, graph_uri: str, status_code: int) -> GraphStoreError:
        """Return an error for a non-2xx Graph Store Protocol response."""
        return cls(
            f"Graph store rejected <{graph_uri}>: HTTP {status_code}",
            status_code=status_code,
        )

    @classmethod
    def unreachable(cls, graph_uri: str, exc: Exception) -> GraphStoreError:
        """Return an error for a request that never produced a response."""
        return cls(f"Graph store request for <{graph_uri}> failed: {type(exc).__name__}")
