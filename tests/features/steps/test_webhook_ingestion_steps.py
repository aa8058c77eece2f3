"""Behavioural coverage for webhook-driven ingestion."""

from __future__ import annotations

import asyncio
import json
import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when
from rdflib import Graph

from ontohub.api.app import AppDependencies, create_app
from ontohub.ingestion.dispatch import BackgroundDispatcher
from ontohub.ingestion.factory import build_pipeline
from ontohub.registry.models import EventStatus
from ontohub.security import SecretVault, generate_key
from ontohub.store import MemoryGraphStore, partition_uri
from tests.helpers.fakes import FakeContentSource, InMemoryLedger, signed_headers
from tests.helpers.ontologies import NON_CONFORMANT_TTL, PIZZA_TTL, PIZZA_V2_TTL

if typ.TYPE_CHECKING:
    from falcon.testing.client import Result


class IngestionContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    owner: str
    repo: str
    secret: str
    vault: SecretVault
    ledger: InMemoryLedger
    store: MemoryGraphStore
    source: FakeContentSource
    response: Result
    event_id: str


@scenario(
    "../webhook_ingestion.feature",
    "A signed push loads the ontology into its partition",
)
def test_signed_push_loads_ontology() -> None:
    """Wrap the pytest-bdd scenario for a successful ingestion."""


@scenario(
    "../webhook_ingestion.feature",
    "A non-conformant document is never written",
)
def test_non_conformant_document_not_written() -> None:
    """Wrap the pytest-bdd scenario for a rejected document."""


@scenario("../webhook_ingestion.feature", "A forged delivery is rejected")
def test_forged_delivery_rejected() -> None:
    """Wrap the pytest-bdd scenario for a bad signature."""


@scenario(
    "../webhook_ingestion.feature",
    "Re-ingesting a version replaces its partition",
)
def test_reingest_replaces_partition() -> None:
    """Wrap the pytest-bdd scenario for partition replacement."""


@pytest.fixture
def ingestion_context() -> IngestionContext:
    """Provision in-memory collaborators shared by every step."""
    return {
        "vault": SecretVault.from_hex(generate_key()),
        "ledger": InMemoryLedger(),
        "store": MemoryGraphStore(),
        "source": FakeContentSource(),
    }


async def _deliver(context: IngestionContext, body: bytes, secret: str) -> Result:
    # The app and dispatcher live on this loop; leaving the conductor runs
    # the shutdown hook, which drains the dispatched pipeline run.
    pipeline = build_pipeline(
        ledger=context["ledger"],
        store=context["store"],
        content_source=context["source"],
    )
    app = create_app(
        AppDependencies(
            ledger=context["ledger"],
            vault=context["vault"],
            dispatcher=BackgroundDispatcher(pipeline),
        )
    )
    async with falcon.testing.ASGIConductor(app) as conductor:
        return await conductor.simulate_post(
            f"/webhooks/{context['owner']}/{context['repo']}",
            body=body,
            headers=signed_headers(body, secret),
        )


@given(parsers.parse('a registered repository "{owner}/{repo}" with secret "{secret}"'))
def given_registered_repository(
    ingestion_context: IngestionContext, owner: str, repo: str, secret: str
) -> None:
    """Register the repository with an encrypted secret."""
    ingestion_context["owner"] = owner
    ingestion_context["repo"] = repo
    ingestion_context["secret"] = secret
    encrypted = ingestion_context["vault"].encrypt(secret)
    ingestion_context["ledger"].register(owner, repo, encrypted)


def _publish(context: IngestionContext, ref: str, content: str) -> None:
    context["source"].add_file(
        context["owner"], context["repo"], ref, "ontology.ttl", content
    )


@given(parsers.parse('the repository publishes the pizza ontology at "{ref}"'))
def given_pizza_published(ingestion_context: IngestionContext, ref: str) -> None:
    """Publish the pizza ontology at *ref*."""
    _publish(ingestion_context, ref, PIZZA_TTL)


@given(parsers.parse('the repository publishes a non-conformant ontology at "{ref}"'))
def given_non_conformant_published(
    ingestion_context: IngestionContext, ref: str
) -> None:
    """Publish a document that violates the baseline shapes."""
    _publish(ingestion_context, ref, NON_CONFORMANT_TTL)


@when(parsers.parse('the repository publishes a smaller ontology at "{ref}"'))
def when_smaller_published(ingestion_context: IngestionContext, ref: str) -> None:
    """Replace the published document with a one-statement ontology."""
    _publish(ingestion_context, ref, PIZZA_V2_TTL)


@given(parsers.parse('GitHub delivers a push for "{ref}" signed with "{secret}"'))
@when(parsers.parse('GitHub delivers a push for "{ref}" signed with "{secret}"'))
def deliver_push(ingestion_context: IngestionContext, ref: str, secret: str) -> None:
    """POST a push delivery and wait for its pipeline run."""
    body = json.dumps({"ref": ref}).encode()
    response = asyncio.run(_deliver(ingestion_context, body, secret))
    ingestion_context["response"] = response
    if response.status_code == 202:
        ingestion_context["event_id"] = response.json["eventId"]


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(ingestion_context: IngestionContext, status: int) -> None:
    """Assert the HTTP response status code."""
    response = ingestion_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}"
    )


@then(parsers.parse('the ingestion event is "{status}"'))
def then_event_status(ingestion_context: IngestionContext, status: str) -> None:
    """Assert the terminal status of the delivered event."""
    event = ingestion_context["ledger"].events[ingestion_context["event_id"]]
    assert event.status is EventStatus(status), (
        f"expected {status}, got {event.status}"
    )


def _partition(context: IngestionContext, version: str) -> Graph:
    uri = str(partition_uri(context["owner"], context["repo"], version))
    return asyncio.run(context["store"].read_graph(uri))


@then(parsers.parse('the partition for "{version}" holds the pizza ontology'))
def then_partition_holds_pizza(
    ingestion_context: IngestionContext, version: str
) -> None:
    """Assert the partition content equals the pizza document."""
    expected = set(Graph().parse(data=PIZZA_TTL, format="turtle"))
    assert set(_partition(ingestion_context, version)) == expected


@then(parsers.parse('the partition for "{version}" holds the smaller ontology'))
def then_partition_holds_smaller(
    ingestion_context: IngestionContext, version: str
) -> None:
    """Assert nothing of the earlier document survived."""
    expected = set(Graph().parse(data=PIZZA_V2_TTL, format="turtle"))
    assert set(_partition(ingestion_context, version)) == expected


@then(parsers.parse('the partition for "{version}" is empty'))
def then_partition_empty(ingestion_context: IngestionContext, version: str) -> None:
    """Assert the store never received the document."""
    assert len(_partition(ingestion_context, version)) == 0


@then(parsers.parse("the event records {classes:d} classes and {properties:d} properties"))
def then_event_metrics(
    ingestion_context: IngestionContext, classes: int, properties: int
) -> None:
    """Assert the indexed metrics."""
    event = ingestion_context["ledger"].events[ingestion_context["event_id"]]
    assert event.metrics is not None, "expected metrics on a loaded event"
    assert (event.metrics.class_count, event.metrics.property_count) == (
        classes,
        properties,
    )


@then("no ingestion event is recorded")
def then_no_event(ingestion_context: IngestionContext) -> None:
    """Assert the rejected delivery left no trace in the ledger."""
    assert ingestion_context["ledger"].events == {}
