"""Parse stage: turn document text into an rdflib graph.

Parsing is strict. The first syntax error aborts the stage with a
``DocumentParseError`` carrying the position where the parser reports
one, and the partially built graph is discarded.

Namespace bindings are collected from a graph created with
``bind_namespaces="none"`` so that rdflib's own default prefixes never
show up as if the document had declared them.
"""

from __future__ import annotations

import asyncio
import json
import typing as typ
from xml.sax import SAXParseException

from rdflib import Dataset, Graph
from rdflib.namespace import NamespaceManager
from rdflib.plugins.parsers.notation3 import BadSyntax

from ontohub.ingestion.errors import DocumentParseError
from ontohub.ingestion.formats import RdfFormat, format_for_content_type
from ontohub.ingestion.models import ParsedDocument

if typ.TYPE_CHECKING:
    from ontohub.ingestion.models import FetchedDocument


def _parse_triples(text: str, rdf_format: RdfFormat) -> Graph:
    graph = Graph(bind_namespaces="none")
    graph.parse(data=text, format=rdf_format.parser)
    return graph


def _parse_quads(text: str, rdf_format: RdfFormat) -> Graph:
    dataset = Dataset()
    dataset.namespace_manager = NamespaceManager(dataset, bind_namespaces="none")
    dataset.parse(data=text, format=rdf_format.parser)

    graph = Graph(bind_namespaces="none")
    for subject, predicate, obj, _context in dataset.quads((None, None, None, None)):
        graph.add((subject, predicate, obj))
    for prefix, namespace in dataset.namespaces():
        graph.bind(prefix, namespace, override=True, replace=True)
    return graph


def _declared_prefixes(graph: Graph, text: str) -> dict[str, str]:
    # Parsers may register helper bindings of their own; a prefix counts
    # only when its namespace IRI appears verbatim in the source.
    return {
        prefix: str(namespace)
        for prefix, namespace in graph.namespaces()
        if str(namespace) and str(namespace) in text
    }


def _error_position(exc: Exception) -> tuple[int | None, int | None]:
    if isinstance(exc, BadSyntax):
        return (exc.lines + 1, None)
    if isinstance(exc, SAXParseException):
        return (exc.getLineNumber(), exc.getColumnNumber())
    if isinstance(exc, json.JSONDecodeError):
        return (exc.lineno, exc.colno)
    return (None, None)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, BadSyntax):
        return f"Bad syntax: {exc._why}"  # noqa: SLF001 - BadSyntax has no public reason accessor
    if isinstance(exc, SAXParseException):
        return f"Malformed XML: {exc.getMessage()}"
    return f"{type(exc).__name__}: {exc}"


def parse_document(text: str, content_type: str) -> ParsedDocument:
    """Parse *text* as *content_type* into a ``ParsedDocument``.

    Unknown content types are parsed as Turtle.

    Raises
    ------
    DocumentParseError
        If the text is not valid in the selected serialization.

    """
    rdf_format = format_for_content_type(content_type)
    try:
        if rdf_format.quads:
            graph = _parse_quads(text, rdf_format)
        else:
            graph = _parse_triples(text, rdf_format)
    except Exception as exc:  # rdflib parsers raise many unrelated types
        line, column = _error_position(exc)
        raise DocumentParseError(
            _error_message(exc), line=line, column=column
        ) from exc

    return ParsedDocument(
        graph=graph,
        prefixes=_declared_prefixes(graph, text),
        content_type=rdf_format.content_type,
    )


class DocumentParser:
    """Parse fetched documents on a worker thread."""

    async def parse(self, document: FetchedDocument) -> ParsedDocument:
        """Decode and parse *document* without blocking the event loop.

        Raises
        ------
        DocumentParseError
            If the bytes are not UTF-8 or the text does not parse.

        """
        try:
            text = document.text()
        except UnicodeDecodeError as exc:
            msg = f"Document {document.path} is not valid UTF-8"
            raise DocumentParseError(msg) from exc
        return await asyncio.to_thread(parse_document, text, document.content_type)
