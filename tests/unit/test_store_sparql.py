"""Unit tests for the Graph Store Protocol client."""

from __future__ import annotations

import typing as typ

import httpx
import pytest
from rdflib import OWL, RDF, Graph, URIRef

from ontohub.store import GraphStoreError, SparqlGraphStore, SparqlStoreConfig

ENDPOINT = "http://fuseki.test/ds/data"
GRAPH = "urn:ontohub:acme:onto:v1"
PIZZA = URIRef("http://example.org/pizza#Pizza")


def _store(
    handler: typ.Callable[[httpx.Request], httpx.Response],
    **config: typ.Any,
) -> SparqlGraphStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SparqlGraphStore(
        SparqlStoreConfig(endpoint=ENDPOINT, **config), http_client=client
    )


class TestReplaceGraph:
    """PUT semantics."""

    @pytest.mark.asyncio
    async def test_puts_ntriples_to_named_graph(self) -> None:
        """The partition IRI travels as ?graph= and the body is N-Triples."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        graph = Graph()
        graph.add((PIZZA, RDF.type, OWL.Class))
        await _store(handler).replace_graph(GRAPH, graph)

        (request,) = seen
        assert request.method == "PUT"
        assert request.url.params["graph"] == GRAPH
        assert request.headers["Content-Type"] == "application/n-triples"
        parsed = Graph().parse(data=request.content.decode("utf-8"), format="nt")
        assert set(parsed) == set(graph)

    @pytest.mark.asyncio
    async def test_sends_basic_auth(self) -> None:
        """Configured credentials are sent with every request."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        await _store(handler, username="admin", password="pw").replace_graph(
            GRAPH, Graph()
        )
        assert seen[0].headers["Authorization"] == "Basic YWRtaW46cHc="

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        """A non-2xx answer is a GraphStoreError carrying the status."""
        store = _store(lambda request: httpx.Response(503))
        with pytest.raises(GraphStoreError) as excinfo:
            await store.replace_graph(GRAPH, Graph())
        assert excinfo.value.status_code == 503

    @pytest.mark.asyncio
    async def test_unreachable_raises(self) -> None:
        """Transport failures are GraphStoreError without a status."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)

        with pytest.raises(GraphStoreError) as excinfo:
            await _store(handler).replace_graph(GRAPH, Graph())
        assert excinfo.value.status_code is None
        assert "ConnectError" in str(excinfo.value)


class TestReadGraph:
    """GET semantics."""

    @pytest.mark.asyncio
    async def test_reads_ntriples(self) -> None:
        """The response body is parsed as N-Triples."""
        body = f"<{PIZZA}> <{RDF.type}> <{OWL.Class}> .\n"
        store = _store(lambda request: httpx.Response(200, text=body))
        graph = await store.read_graph(GRAPH)
        assert set(graph) == {(PIZZA, RDF.type, OWL.Class)}

    @pytest.mark.asyncio
    async def test_missing_graph_reads_empty(self) -> None:
        """404 means the partition does not exist yet."""
        store = _store(lambda request: httpx.Response(404))
        assert len(await store.read_graph(GRAPH)) == 0


class TestSparqlStoreConfig:
    """SparqlStoreConfig.from_config()."""

    def test_no_endpoint_returns_none(self) -> None:
        """Without a URL there is nothing to connect to."""
        from ontohub.config import OntohubConfig

        config = OntohubConfig(encryption_key=b"\x00" * 32)
        assert SparqlStoreConfig.from_config(config) is None

    def test_password_not_in_repr(self) -> None:
        """The password never appears in repr."""
        config = SparqlStoreConfig(endpoint=ENDPOINT, username="u", password="hunter2")
        assert "hunter2" not in repr(config)
