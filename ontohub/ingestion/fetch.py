"""Fetch stage: locate and download the ontology document of a repository."""

from __future__ import annotations

import typing as typ

from ontohub.github.errors import GitHubAPIError
from ontohub.ingestion.errors import OntologyNotFoundError
from ontohub.ingestion.formats import format_for_path
from ontohub.ingestion.models import FetchedDocument
from ontohub.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from ontohub.github.client import GitHubContentSource, TreeEntry

logger = get_logger(__name__)

# GitHub answers an unknown ref with 404, an empty repository with 409,
# and a malformed ref with 422.
_MISSING_TREE_STATUSES = frozenset({404, 409, 422})


def select_document_path(entries: typ.Iterable[TreeEntry]) -> str | None:
    """Return the ontology file to ingest from a root tree listing.

    Only ``blob`` entries with a supported extension qualify. When several
    do, the lexicographically smallest path wins so repeated deliveries for
    the same ref always pick the same file.
    """
    candidates = [
        entry.path
        for entry in entries
        if entry.type == "blob" and format_for_path(entry.path) is not None
    ]
    return min(candidates, default=None)


class DocumentFetcher:
    """Download the ontology document for a repository ref.

    Parameters
    ----------
    source
        GitHub content source used for tree listing and raw downloads.

    """

    def __init__(self, source: GitHubContentSource) -> None:
        """Bind the fetcher to a content source."""
        self._source = source

    async def fetch(self, owner: str, repo: str, ref: str) -> FetchedDocument:
        """Return the raw bytes and content type of the selected document.

        Raises
        ------
        OntologyNotFoundError
            If the ref does not resolve to a tree or the tree holds no
            supported file.
        UpstreamError
            For any other GitHub failure, including timeouts.

        """
        try:
            entries = await self._source.list_tree(owner, repo, ref)
        except GitHubAPIError as exc:
            if exc.status_code in _MISSING_TREE_STATUSES:
                raise OntologyNotFoundError(owner, repo, ref) from exc
            raise

        path = select_document_path(entries)
        if path is None:
            raise OntologyNotFoundError(owner, repo, ref)

        rdf_format = format_for_path(path)
        if rdf_format is None:  # pragma: no cover - guarded by select_document_path
            raise OntologyNotFoundError(owner, repo, ref)

        content = await self._source.fetch_raw(owner, repo, ref, path)
        log_debug(
            logger,
            "Fetched %s from %s/%s@%s (%d bytes)",
            path,
            owner,
            repo,
            ref,
            len(content),
        )
        return FetchedDocument(
            path=path,
            content_type=rdf_format.content_type,
            content=content,
            source_url=self._source.raw_url(owner, repo, ref, path),
        )
