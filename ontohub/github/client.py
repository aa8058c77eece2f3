"""Async GitHub client for listing trees and downloading raw files."""

from __future__ import annotations

import dataclasses
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from .errors import GitHubAPIError, GitHubConfigError

if typ.TYPE_CHECKING:
    from ontohub.config import OntohubConfig

_HTTP_ERROR_STATUS_THRESHOLD = 400


class TreeEntry(msgspec.Struct, kw_only=True, frozen=True):
    """One entry of a ``git/trees`` listing.

    Attributes
    ----------
    path : str
        Path relative to the listed tree.
    type : str
        ``blob`` for files, ``tree`` for directories, ``commit`` for
        submodules.

    """

    path: str
    type: str
    sha: str | None = None
    size: int | None = None


class _TreeResponse(msgspec.Struct, kw_only=True):
    sha: str | None = None
    tree: list[TreeEntry] = msgspec.field(default_factory=list)
    truncated: bool = False


class GitHubContentSource(typ.Protocol):
    """Interface the fetch stage uses to read repository content."""

    async def list_tree(self, owner: str, repo: str, ref: str) -> list[TreeEntry]:
        """Return the top-level entries of the tree at *ref*."""
        ...

    async def fetch_raw(self, owner: str, repo: str, ref: str, path: str) -> bytes:
        """Return the bytes of *path* at *ref*."""
        ...

    def raw_url(self, owner: str, repo: str, ref: str, path: str) -> str:
        """Return the download URL for *path* at *ref*."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubContentConfig:
    """Configuration for the GitHub content client.

    ``token`` is optional; public repositories need none.
    """

    token: str | None = dataclasses.field(default=None, repr=False)
    api_url: str = "https://api.github.com"
    raw_url: str = "https://raw.githubusercontent.com"
    timeout_s: float = 20.0
    user_agent: str = "ontohub/0.1"

    @classmethod
    def from_config(cls, config: OntohubConfig) -> GitHubContentConfig:
        """Return client settings derived from the process configuration."""
        return cls(
            token=config.github_token,
            api_url=config.github_api_url.rstrip("/"),
            raw_url=config.github_raw_url.rstrip("/"),
            timeout_s=config.http_timeout_s,
        )


def _segment(value: str) -> str:
    return quote(value, safe="")


def _ref_path(ref: str) -> str:
    # Refs such as refs/heads/main keep their slashes as path separators.
    return quote(ref, safe="/")


class GitHubContentClient:
    """``GitHubContentSource`` implementation using the GitHub REST API."""

    def __init__(
        self,
        config: GitHubContentConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client, creating an HTTP client unless one is given."""
        if config.token is not None and not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        headers = {"User-Agent": config.user_agent}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._headers = headers
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def list_tree(self, owner: str, repo: str, ref: str) -> list[TreeEntry]:
        """List the entries directly under the root tree at *ref*.

        The ``recursive`` query parameter is omitted because GitHub treats
        any value, including ``0``, as a request for a recursive listing.

        Raises
        ------
        GitHubAPIError
            For non-2xx responses (``status_code`` set), timeouts, transport
            failures, and malformed bodies.

        """
        url = (
            f"{self._config.api_url}/repos/{_segment(owner)}/{_segment(repo)}"
            f"/git/trees/{_ref_path(ref)}"
        )
        response = await self._get(
            url, operation="tree listing", accept="application/vnd.github+json"
        )
        try:
            listing = msgspec.json.decode(response.content, type=_TreeResponse)
        except msgspec.DecodeError as exc:
            raise GitHubAPIError.malformed("tree listing") from exc
        return listing.tree

    async def fetch_raw(self, owner: str, repo: str, ref: str, path: str) -> bytes:
        """Download the raw bytes of *path* at *ref*."""
        response = await self._get(
            self.raw_url(owner, repo, ref, path),
            operation="raw content",
            accept="application/octet-stream",
        )
        return response.content

    def raw_url(self, owner: str, repo: str, ref: str, path: str) -> str:
        """Return the raw-content URL for *path* at *ref*."""
        return (
            f"{self._config.raw_url}/{_segment(owner)}/{_segment(repo)}"
            f"/{_ref_path(ref)}/{quote(path, safe='/')}"
        )

    async def _get(self, url: str, *, operation: str, accept: str) -> httpx.Response:
        headers = {**self._headers, "Accept": accept}
        try:
            response = await self._client.get(
                url, headers=headers, timeout=self._config.timeout_s
            )
        except httpx.TimeoutException as exc:
            raise GitHubAPIError.timeout(operation) from exc
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport(operation, exc) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(operation, response.status_code)
        return response
