"""Unit tests for repository slug helpers."""

from __future__ import annotations

import pytest

from ontohub.common.slug import parse_repo_slug, repo_slug


def test_repo_slug_joins_owner_and_repo() -> None:
    """repo_slug returns owner/repo."""
    assert repo_slug("acme", "pizza-ontology") == "acme/pizza-ontology"


def test_parse_repo_slug_round_trips() -> None:
    """parse_repo_slug inverts repo_slug."""
    assert parse_repo_slug(repo_slug("Acme-Org", "onto_core")) == (
        "Acme-Org",
        "onto_core",
    )


@pytest.mark.parametrize(
    "slug",
    ["", "acme", "/", "acme/", "/onto", "acme/onto/extra", "acme//onto"],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """Malformed slugs raise ValueError."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)
