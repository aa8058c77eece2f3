"""GitHub REST and raw-content access for ontology fetching."""

from __future__ import annotations

from .client import (
    GitHubContentClient,
    GitHubContentConfig,
    GitHubContentSource,
    TreeEntry,
)
from .errors import GitHubAPIError, GitHubConfigError

__all__ = [
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubContentClient",
    "GitHubContentConfig",
    "GitHubContentSource",
    "TreeEntry",
]
