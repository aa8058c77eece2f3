"""GitHub webhook ingress resource.

``POST /webhooks/{owner}/{repo}`` authenticates a delivery against the
repository's registered secret, records a queued ingestion event, hands the
job to the dispatcher and answers ``202 Accepted`` without waiting for the
pipeline. Each step is a hard gate:

1. A missing body or ``X-Hub-Signature-256`` header is a 400.
2. An unregistered repository is a 404.
3. A stored secret that cannot be decrypted, or a signature that does not
   match, is a 401.
4. A body that is not a JSON object of the expected shape is a 400.

``ping`` deliveries, which GitHub sends when a hook is created, are
authenticated and acknowledged without creating an event. If the dispatcher
rejects an accepted job the new event is marked failed and the error
propagates as a 500.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import msgspec

from ontohub.api.errors import InvalidInputError
from ontohub.errors import AuthenticationError
from ontohub.ingestion.models import IngestionJob
from ontohub.logging import get_logger, log_error, log_exception, log_info
from ontohub.registry.errors import RegistrationNotFoundError
from ontohub.security.signature import verify_signature

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ontohub.ingestion.dispatch import Dispatcher
    from ontohub.registry.ledger import EventLedger
    from ontohub.security.vault import SecretVault

__all__ = [
    "ReleasePayload",
    "WebhookPayload",
    "WebhookResource",
    "resolve_ref",
    "version_from_ref",
]

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"

DEFAULT_REF = "HEAD"
_REF_PREFIXES = ("refs/tags/", "refs/heads/")


class ReleasePayload(msgspec.Struct, kw_only=True):
    """The part of a ``release`` object the ingress reads."""

    tag_name: str | None = None


class WebhookPayload(msgspec.Struct, kw_only=True):
    """Fields of a push or release delivery that select the content.

    Unknown fields are ignored.
    """

    ref: str | None = None
    release: ReleasePayload | None = None


_PAYLOAD_DECODER = msgspec.json.Decoder(WebhookPayload)


def resolve_ref(payload: WebhookPayload) -> str:
    """Return the git reference named by *payload*.

    Prefers ``ref``, then ``release.tag_name``, then ``HEAD``.
    """
    if payload.ref:
        return payload.ref
    if payload.release is not None and payload.release.tag_name:
        return payload.release.tag_name
    return DEFAULT_REF


def version_from_ref(ref: str) -> str:
    """Return *ref* without a ``refs/tags/`` or ``refs/heads/`` prefix.

    Examples
    --------
    >>> version_from_ref("refs/tags/v1.2.0")
    'v1.2.0'
    >>> version_from_ref("HEAD")
    'HEAD'

    """
    for prefix in _REF_PREFIXES:
        if ref.startswith(prefix) and len(ref) > len(prefix):
            return ref.removeprefix(prefix)
    return ref


class WebhookResource:
    """Accept GitHub deliveries for registered repositories.

    Parameters
    ----------
    ledger
        Ledger used to look up secrets and record queued events.
    vault
        Vault decrypting the stored webhook secrets.
    dispatcher
        Dispatcher receiving accepted jobs.

    """

    def __init__(
        self,
        *,
        ledger: EventLedger,
        vault: SecretVault,
        dispatcher: Dispatcher,
    ) -> None:
        """Configure the resource with its collaborators."""
        self._ledger = ledger
        self._vault = vault
        self._dispatcher = dispatcher

    async def on_post(
        self, req: Request, resp: Response, owner: str, repo: str
    ) -> None:
        """Handle POST /webhooks/{owner}/{repo}."""
        body = await req.stream.read()
        signature = req.get_header(SIGNATURE_HEADER)
        if not body:
            raise InvalidInputError("request body is required", field="body")
        if not signature:
            raise InvalidInputError("signature header is required", field=SIGNATURE_HEADER)

        await self._authenticate(owner, repo, body, signature)

        event_type = req.get_header(EVENT_HEADER) or ""
        delivery_id = req.get_header(DELIVERY_HEADER)
        if event_type == "ping":
            log_info(logger, "Ping delivery %s for %s/%s", delivery_id, owner, repo)
            resp.status = HTTPStatus.OK
            resp.media = {"accepted": False, "event": "ping"}
            return

        try:
            payload = _PAYLOAD_DECODER.decode(body)
        except msgspec.DecodeError as exc:
            raise InvalidInputError(f"malformed payload: {exc}", field="body") from exc

        git_ref = resolve_ref(payload)
        version = version_from_ref(git_ref)
        event_id = await self._ledger.create_event(
            owner=owner, repo=repo, git_ref=git_ref, version=version
        )
        job = IngestionJob(
            event_id=event_id,
            owner=owner,
            repo=repo,
            git_ref=git_ref,
            version=version,
            delivery_id=delivery_id,
        )
        try:
            await self._dispatcher.dispatch(job)
        except Exception:
            await self._abandon(event_id)
            raise
        log_info(
            logger,
            "Accepted %s delivery %s for %s/%s at %s as event %s",
            event_type or "unknown",
            delivery_id,
            owner,
            repo,
            git_ref,
            event_id,
        )

        resp.status = HTTPStatus.ACCEPTED
        resp.media = {"accepted": True, "eventId": event_id}

    async def _authenticate(
        self, owner: str, repo: str, body: bytes, signature: str
    ) -> None:
        encrypted = await self._ledger.get_registration_secret(owner, repo)
        if encrypted is None:
            raise RegistrationNotFoundError(owner, repo)
        secret = self._vault.decrypt(encrypted)
        if not verify_signature(body, signature, secret):
            raise AuthenticationError.signature_mismatch()

    async def _abandon(self, event_id: str) -> None:
        """Mark an event that never reached a dispatcher as failed."""
        log_error(logger, "Dispatch failed for event %s; marking it failed", event_id)
        try:
            await self._ledger.mark_failed(event_id)
        except Exception as exc:  # noqa: BLE001 - the dispatch error is re-raised
            log_exception(logger, f"Could not mark event {event_id} failed", exc)
