"""Index stage: derive summary metrics from a document."""

from __future__ import annotations

import typing as typ

from rdflib import OWL, RDF

from ontohub.registry.models import OntologyMetrics

if typ.TYPE_CHECKING:
    from rdflib.term import URIRef

    from ontohub.ingestion.models import ParsedDocument
    from ontohub.registry.ledger import EventLedger

_PROPERTY_TYPES: tuple[URIRef, ...] = (OWL.ObjectProperty, OWL.DatatypeProperty)


def compute_metrics(document: ParsedDocument) -> OntologyMetrics:
    """Count classes and properties and list the declared prefixes.

    ``class_count`` is the number of distinct subjects typed
    ``owl:Class``. ``property_count`` adds the distinct subjects typed
    ``owl:ObjectProperty`` to those typed ``owl:DatatypeProperty``, so a
    subject typed as both counts twice.

    Examples
    --------
    Two classes, two object properties and one datatype property yield
    ``OntologyMetrics(class_count=2, property_count=3, ...)``.

    """
    graph = document.graph
    class_count = len(set(graph.subjects(RDF.type, OWL.Class)))
    property_count = sum(
        len(set(graph.subjects(RDF.type, property_type)))
        for property_type in _PROPERTY_TYPES
    )
    return OntologyMetrics(
        class_count=class_count,
        property_count=property_count,
        prefixes=tuple(sorted(document.prefixes)),
    )


class MetricsIndexer:
    """Compute metrics and attach them to the ingestion event.

    Parameters
    ----------
    ledger
        Ledger holding the event the metrics belong to.

    """

    def __init__(self, ledger: EventLedger) -> None:
        """Bind the indexer to a ledger."""
        self._ledger = ledger

    async def index(
        self, event_id: str, document: ParsedDocument, partition_uri: str
    ) -> OntologyMetrics:
        """Persist metrics for *document* on *event_id* and return them."""
        metrics = compute_metrics(document)
        await self._ledger.record_metrics(event_id, metrics, partition_uri)
        return metrics
