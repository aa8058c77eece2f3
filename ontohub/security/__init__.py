"""Security primitives guarding the webhook ingress.

``verify_signature`` checks GitHub's ``X-Hub-Signature-256`` header and
``SecretVault`` keeps per-repository webhook secrets encrypted at rest.
"""

from __future__ import annotations

from .signature import compute_signature, verify_signature
from .vault import SecretVault, decrypt, encrypt, generate_key, parse_key

__all__ = [
    "SecretVault",
    "compute_signature",
    "decrypt",
    "encrypt",
    "generate_key",
    "parse_key",
    "verify_signature",
]
