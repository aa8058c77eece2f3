"""HMAC-SHA256 webhook signature verification.

GitHub signs each delivery body with the webhook secret and sends the
result as ``sha256=<hex digest>``. Verification recomputes the digest and
compares the two headers in constant time.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature GitHub would send for *body*."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature_header: str, secret: str) -> bool:
    """Return ``True`` when *signature_header* authenticates *body*.

    Parameters
    ----------
    body
        Raw request body exactly as received.
    signature_header
        Value of the ``X-Hub-Signature-256`` header.
    secret
        Plaintext webhook secret shared with GitHub.

    Returns
    -------
    bool
        ``False`` for a missing algorithm prefix, a non-ASCII header, or a
        digest mismatch. ``hmac.compare_digest`` handles differing lengths
        without branching on content.

    """
    if not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    try:
        provided = signature_header.encode("ascii")
    except UnicodeEncodeError:
        return False
    expected = compute_signature(body, secret).encode("ascii")
    return hmac.compare_digest(provided, expected)
