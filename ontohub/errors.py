"""Error taxonomy shared by the ingestion core.

Each package defines its own concrete errors, but all of them derive from
one of the categories below so the API layer and the pipeline logger can
react to a category without knowing every subclass.

``ConfigurationError``
    Invalid process configuration, such as a malformed encryption key.
    Fatal at startup.
``AuthenticationError``
    A webhook signature or an encrypted secret failed to verify.
``NotFoundError``
    A registration, ontology file, or ledger event does not exist.
``UpstreamError``
    GitHub or the graph store answered with a failure, timed out, or could
    not be reached.
"""

from __future__ import annotations


class OntohubError(Exception):
    """Base class for every error raised by Ontohub."""


class ConfigurationError(OntohubError):
    """Raised when process configuration is missing or malformed."""

    @classmethod
    def invalid_setting(cls, name: str, reason: str) -> ConfigurationError:
        """Return an error for an environment setting that cannot be used."""
        return cls(f"{name} {reason}")

    @classmethod
    def missing_setting(cls, name: str) -> ConfigurationError:
        """Return an error for a required setting that is unset."""
        return cls(f"{name} is required")


class AuthenticationError(OntohubError):
    """Raised when a signature or authenticated ciphertext does not verify."""

    @classmethod
    def signature_mismatch(cls) -> AuthenticationError:
        """Return an error for a webhook signature that does not match."""
        return cls("Invalid webhook signature")

    @classmethod
    def decryption_failed(cls, reason: str) -> AuthenticationError:
        """Return an error for ciphertext that cannot be authenticated."""
        return cls(f"Secret could not be decrypted: {reason}")


class NotFoundError(OntohubError):
    """Raised when a requested resource does not exist."""


class UpstreamError(OntohubError):
    """Raised when an external service fails or cannot be reached.

    Attributes
    ----------
    status_code
        HTTP status returned by the service, when one was received.

    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "NotFoundError",
    "OntohubError",
    "UpstreamError",
]
