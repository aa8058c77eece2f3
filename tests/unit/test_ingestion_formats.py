"""Unit tests for the supported RDF serializations."""

from __future__ import annotations

import pytest

from ontohub.ingestion.formats import (
    JSON_LD,
    NQUADS,
    RDF_XML,
    TRIG,
    TURTLE,
    format_for_content_type,
    format_for_path,
    is_ontology_path,
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("ontology.ttl", TURTLE),
        ("pizza.OWL", RDF_XML),
        ("docs/model.rdf", RDF_XML),
        ("graphs.trig", TRIG),
        ("dump.nq", NQUADS),
        ("context.jsonld", JSON_LD),
    ],
)
def test_format_for_path(path: str, expected: object) -> None:
    """Extensions are matched case-insensitively."""
    assert format_for_path(path) == expected


@pytest.mark.parametrize("path", ["README.md", "ontology", "data.json", "ttl"])
def test_unsupported_paths(path: str) -> None:
    """Files without a supported extension are not ontology documents."""
    assert format_for_path(path) is None
    assert not is_ontology_path(path)


def test_content_type_ignores_parameters() -> None:
    """Media type parameters do not affect the lookup."""
    assert format_for_content_type("application/rdf+xml; charset=utf-8") == RDF_XML


def test_unknown_content_type_falls_back_to_turtle() -> None:
    """An unregistered media type parses as Turtle."""
    assert format_for_content_type("application/octet-stream") == TURTLE


def test_quad_formats_are_flagged() -> None:
    """Only syntaxes that can carry named graphs are marked as quads."""
    assert TRIG.quads
    assert NQUADS.quads
    assert not TURTLE.quads
    assert not RDF_XML.quads
