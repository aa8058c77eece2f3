"""RDF serializations accepted for ingestion.

The registry below is the single source for which file extensions are
picked up from a repository, which content type each maps to, and which
rdflib parser handles that content type.
"""

from __future__ import annotations

import dataclasses
import posixpath


@dataclasses.dataclass(frozen=True, slots=True)
class RdfFormat:
    """One supported serialization.

    Attributes
    ----------
    content_type
        Media type tag recorded on fetched documents.
    parser
        rdflib parser plugin name.
    quads
        ``True`` when the syntax can carry named graphs.

    """

    content_type: str
    parser: str
    quads: bool = False


TURTLE = RdfFormat("text/turtle", "turtle")
RDF_XML = RdfFormat("application/rdf+xml", "xml")
N3 = RdfFormat("text/n3", "n3")
TRIG = RdfFormat("application/trig", "trig", quads=True)
NTRIPLES = RdfFormat("application/n-triples", "nt")
NQUADS = RdfFormat("application/n-quads", "nquads", quads=True)
JSON_LD = RdfFormat("application/ld+json", "json-ld", quads=True)

EXTENSION_FORMATS: dict[str, RdfFormat] = {
    ".ttl": TURTLE,
    ".owl": RDF_XML,
    ".rdf": RDF_XML,
    ".n3": N3,
    ".trig": TRIG,
    ".nt": NTRIPLES,
    ".nq": NQUADS,
    ".jsonld": JSON_LD,
}

_CONTENT_TYPE_FORMATS: dict[str, RdfFormat] = {
    fmt.content_type: fmt for fmt in EXTENSION_FORMATS.values()
}

DEFAULT_FORMAT = TURTLE


def format_for_path(path: str) -> RdfFormat | None:
    """Return the format for *path* by its lowercased suffix, if supported."""
    _, suffix = posixpath.splitext(path)
    return EXTENSION_FORMATS.get(suffix.lower())


def format_for_content_type(content_type: str) -> RdfFormat:
    """Return the format registered for *content_type*.

    Unknown tags fall back to Turtle. Media type parameters such as
    ``; charset=utf-8`` are ignored.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    return _CONTENT_TYPE_FORMATS.get(media_type, DEFAULT_FORMAT)


def is_ontology_path(path: str) -> bool:
    """Return ``True`` when *path* has a supported ontology extension."""
    return format_for_path(path) is not None
