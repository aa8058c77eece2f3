"""Webhook-triggered ontology ingestion pipeline.

Stages run in a fixed order: fetch the document from GitHub, parse it,
validate it against SHACL shapes, replace its dataset partition in the
graph store, and record summary metrics on the ingestion event.
"""

from __future__ import annotations

from .dispatch import BackgroundDispatcher, Dispatcher, DramatiqDispatcher
from .errors import (
    ConformanceError,
    DocumentParseError,
    IngestionError,
    OntologyNotFoundError,
)
from .fetch import DocumentFetcher, select_document_path
from .index import MetricsIndexer, compute_metrics
from .models import (
    FetchedDocument,
    IngestionJob,
    ParsedDocument,
    PipelineOutcome,
    PipelineStage,
    ValidationReport,
    ValidationViolation,
)
from .parse import DocumentParser, parse_document
from .pipeline import IngestionPipeline, PipelineStages
from .validate import ConformanceValidator
from .write import GraphWriter

__all__ = [
    "BackgroundDispatcher",
    "ConformanceError",
    "ConformanceValidator",
    "Dispatcher",
    "DocumentFetcher",
    "DocumentParseError",
    "DocumentParser",
    "DramatiqDispatcher",
    "FetchedDocument",
    "GraphWriter",
    "IngestionError",
    "IngestionJob",
    "IngestionPipeline",
    "MetricsIndexer",
    "OntologyNotFoundError",
    "ParsedDocument",
    "PipelineOutcome",
    "PipelineStage",
    "PipelineStages",
    "ValidationReport",
    "ValidationViolation",
    "compute_metrics",
    "parse_document",
    "select_document_path",
]
