"""Repository slug utilities.

A slug is the ``owner/repo`` identifier GitHub uses for a repository. It is
used in log lines and error messages, never as a filesystem path.
"""

from __future__ import annotations


def repo_slug(owner: str, repo: str) -> str:
    """Join a repository owner and name into ``owner/repo`` form.

    Examples
    --------
    >>> repo_slug("octo", "ontology")
    'octo/ontology'

    """
    return f"{owner}/{repo}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split an ``owner/repo`` slug into its two parts.

    Raises
    ------
    ValueError
        If *slug* does not contain exactly one ``/`` separating two
        non-empty parts.

    Examples
    --------
    >>> parse_repo_slug("octo/ontology")
    ('octo', 'ontology')

    """
    owner, sep, repo = slug.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        msg = f"Invalid repository slug: expected 'owner/repo', got {slug!r}"
        raise ValueError(msg)
    return owner, repo
