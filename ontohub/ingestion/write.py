"""Write stage: publish a document as its dataset partition."""

from __future__ import annotations

import typing as typ

from ontohub.logging import get_logger, log_debug
from ontohub.store.vocab import partition_uri

if typ.TYPE_CHECKING:
    from ontohub.ingestion.models import ParsedDocument
    from ontohub.store.protocol import GraphStore

logger = get_logger(__name__)


class GraphWriter:
    """Replace a repository version's partition with a parsed document.

    Parameters
    ----------
    store
        Graph store receiving the partition.

    """

    def __init__(self, store: GraphStore) -> None:
        """Bind the writer to a graph store."""
        self._store = store

    async def write(
        self, owner: str, repo: str, version: str, document: ParsedDocument
    ) -> str:
        """Replace the partition for ``owner/repo@version`` and return its IRI.

        Whatever the partition held before is discarded; afterwards it holds
        exactly the statements of *document*.

        Raises
        ------
        UpstreamError
            If the store rejects the write or cannot be reached.

        """
        uri = str(partition_uri(owner, repo, version))
        await self._store.replace_graph(uri, document.graph)
        log_debug(logger, "Replaced %s with %d statements", uri, len(document))
        return uri
