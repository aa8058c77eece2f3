"""SPARQL 1.1 Graph Store Protocol client.

Writes use ``PUT ?graph=<uri>``, which the protocol defines as an atomic
replace of the named graph. Bodies are serialized as N-Triples so no
prefix handling is needed on the server side.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

import httpx
from rdflib import Graph

from .errors import GraphStoreError

if typ.TYPE_CHECKING:
    from ontohub.config import OntohubConfig

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
_NTRIPLES = "application/n-triples"


@dataclasses.dataclass(frozen=True, slots=True)
class SparqlStoreConfig:
    """Connection settings for a Graph Store Protocol endpoint."""

    endpoint: str
    username: str | None = None
    password: str | None = dataclasses.field(default=None, repr=False)
    timeout_s: float = 20.0

    @classmethod
    def from_config(cls, config: OntohubConfig) -> SparqlStoreConfig | None:
        """Return store settings, or ``None`` when no endpoint is configured."""
        if config.graph_store_url is None:
            return None
        return cls(
            endpoint=config.graph_store_url,
            username=config.graph_store_user,
            password=config.graph_store_password,
            timeout_s=config.http_timeout_s,
        )


class SparqlGraphStore:
    """``GraphStore`` backed by a remote Graph Store Protocol endpoint."""

    def __init__(
        self,
        config: SparqlStoreConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the store, creating an HTTP client unless one is given."""
        self._config = config
        auth: httpx.BasicAuth | None = None
        if config.username is not None:
            auth = httpx.BasicAuth(config.username, config.password or "")
        self._auth = auth
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def replace_graph(self, graph_uri: str, graph: Graph) -> None:
        """PUT *graph* as the new content of *graph_uri*.

        Raises
        ------
        GraphStoreError
            If the endpoint answers with a non-2xx status or cannot be
            reached within the configured timeout.

        """
        body = await asyncio.to_thread(_serialize_ntriples, graph)
        response = await self._request(
            "PUT",
            graph_uri,
            content=body,
            headers={"Content-Type": _NTRIPLES},
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GraphStoreError.http_error(graph_uri, response.status_code)

    async def read_graph(self, graph_uri: str) -> Graph:
        """GET the triples of *graph_uri*; a missing graph reads as empty."""
        response = await self._request(
            "GET", graph_uri, headers={"Accept": _NTRIPLES}
        )
        if response.status_code == _HTTP_NOT_FOUND:
            return Graph()
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GraphStoreError.http_error(graph_uri, response.status_code)
        graph = Graph()
        graph.parse(data=response.text, format="nt")
        return graph

    async def _request(
        self,
        method: str,
        graph_uri: str,
        *,
        headers: dict[str, str],
        content: bytes | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                self._config.endpoint,
                params={"graph": graph_uri},
                content=content,
                headers=headers,
                auth=self._auth or httpx.USE_CLIENT_DEFAULT,
                timeout=self._config.timeout_s,
            )
        except httpx.HTTPError as exc:
            raise GraphStoreError.unreachable(graph_uri, exc) from exc


def _serialize_ntriples(graph: Graph) -> bytes:
    return graph.serialize(format="nt", encoding="utf-8")
