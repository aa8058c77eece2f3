"""Addressing of dataset partitions in the shared store."""

from __future__ import annotations

from urllib.parse import quote

from rdflib import URIRef

PARTITION_SCHEME = "urn:ontohub"


def partition_uri(owner: str, repo: str, version: str) -> URIRef:
    """Return the named-graph IRI for one version of a repository.

    Each component is percent-encoded, keeping only RFC 3986 unreserved
    characters, so a ``:`` or ``/`` inside a component can never collide
    with the separators.

    Examples
    --------
    >>> str(partition_uri("acme", "onto", "v1.0"))
    'urn:ontohub:acme:onto:v1.0'

    """
    parts = (quote(part, safe="") for part in (owner, repo, version))
    return URIRef(":".join((PARTITION_SCHEME, *parts)))
