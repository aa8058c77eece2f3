"""Unit tests for the GitHub content client."""

from __future__ import annotations

import typing as typ

import httpx
import pytest

from ontohub.github import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubContentClient,
    GitHubContentConfig,
)

TREE_BODY = {
    "sha": "abc123",
    "tree": [
        {"path": "README.md", "type": "blob", "sha": "1", "size": 10},
        {"path": "pizza.ttl", "type": "blob", "sha": "2", "size": 400},
        {"path": "docs", "type": "tree", "sha": "3"},
    ],
    "truncated": False,
}


def _client(
    handler: typ.Callable[[httpx.Request], httpx.Response],
    **config: typ.Any,
) -> GitHubContentClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubContentClient(GitHubContentConfig(**config), http_client=http_client)


class TestListTree:
    """list_tree() request shape and decoding."""

    @pytest.mark.asyncio
    async def test_lists_root_entries_without_recursive(self) -> None:
        """The root tree is requested without any recursive parameter."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=TREE_BODY)

        entries = await _client(handler).list_tree("acme", "pizza", "refs/tags/v1")

        (request,) = seen
        assert request.url.path == "/repos/acme/pizza/git/trees/refs/tags/v1"
        assert "recursive" not in request.url.params, "listing must not recurse"
        assert [(e.path, e.type) for e in entries] == [
            ("README.md", "blob"),
            ("pizza.ttl", "blob"),
            ("docs", "tree"),
        ]

    @pytest.mark.asyncio
    async def test_sends_token_when_configured(self) -> None:
        """A token is sent as a bearer credential."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=TREE_BODY)

        await _client(handler, token="ghp_secret").list_tree("acme", "pizza", "HEAD")
        assert seen[0].headers["Authorization"] == "Bearer ghp_secret"
        assert seen[0].headers["User-Agent"] == "ontohub/0.1"

    @pytest.mark.asyncio
    async def test_anonymous_without_token(self) -> None:
        """Public repositories are read without credentials."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=TREE_BODY)

        await _client(handler).list_tree("acme", "pizza", "HEAD")
        assert "Authorization" not in seen[0].headers


class TestErrors:
    """Failure mapping to GitHubAPIError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 409, 500])
    async def test_http_error_keeps_status(self, status: int) -> None:
        """Non-2xx answers raise with the status code attached."""
        client = _client(lambda request: httpx.Response(status))
        with pytest.raises(GitHubAPIError) as excinfo:
            await client.list_tree("acme", "pizza", "HEAD")
        assert excinfo.value.status_code == status

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Timeouts raise without a status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "read timed out"
            raise httpx.ReadTimeout(msg, request=request)

        with pytest.raises(GitHubAPIError, match="timed out") as excinfo:
            await _client(handler).list_tree("acme", "pizza", "HEAD")
        assert excinfo.value.status_code is None

    @pytest.mark.asyncio
    async def test_malformed_body(self) -> None:
        """A body that is not a tree listing is rejected."""
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(GitHubAPIError, match="malformed"):
            await client.list_tree("acme", "pizza", "HEAD")

    def test_blank_token_is_rejected(self) -> None:
        """An empty token is a configuration error."""
        with pytest.raises(GitHubConfigError):
            GitHubContentClient(GitHubContentConfig(token="  "))


class TestRawContent:
    """fetch_raw() and raw_url()."""

    @pytest.mark.asyncio
    async def test_fetch_raw_returns_bytes(self) -> None:
        """Raw downloads hit the raw host with the ref and path."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"@prefix : <x#> .")

        client = _client(handler, raw_url="https://raw.test")
        content = await client.fetch_raw("acme", "pizza", "v1.0", "pizza.ttl")

        assert content == b"@prefix : <x#> ."
        assert str(seen[0].url) == "https://raw.test/acme/pizza/v1.0/pizza.ttl"

    def test_raw_url_encodes_spaces(self) -> None:
        """Path characters outside the URL grammar are percent-encoded."""
        client = GitHubContentClient(GitHubContentConfig(raw_url="https://raw.test"))
        assert client.raw_url("acme", "pizza", "main", "my onto.ttl") == (
            "https://raw.test/acme/pizza/main/my%20onto.ttl"
        )
