"""GitHub content client errors."""

from __future__ import annotations

from ontohub.errors import ConfigurationError, UpstreamError


class GitHubAPIError(UpstreamError):
    """Raised when GitHub answers with an error or cannot be reached."""

    @classmethod
    def http_error(cls, operation: str, status_code: int) -> GitHubAPIError:
        """Return an error for a non-2xx HTTP response."""
        return cls(f"GitHub {operation} failed: HTTP {status_code}", status_code=status_code)

    @classmethod
    def timeout(cls, operation: str) -> GitHubAPIError:
        """Return an error for a request that exceeded its timeout."""
        return cls(f"GitHub {operation} timed out")

    @classmethod
    def transport(cls, operation: str, exc: Exception) -> GitHubAPIError:
        """Return an error for a request that never produced a response."""
        return cls(f"GitHub {operation} request failed: {type(exc).__name__}")

    @classmethod
    def malformed(cls, operation: str) -> GitHubAPIError:
        """Return an error for a response body of an unexpected shape."""
        return cls(f"GitHub {operation} returned a malformed response")


class GitHubConfigError(ConfigurationError):
    """Raised when the GitHub client configuration is unusable."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when a blank token is supplied."""
        return cls("GitHub token must be non-empty when provided")
