"""Repository reference parsing."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from repodiag.exceptions import InvalidReference


@dataclass(frozen=True)
class RepoRef:
    """Owner/repo pair identifying a repository on the host."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.full_name


def parse_repo_url(url: str) -> RepoRef:
    """Parse a host URL such as ``https://github.com/owner/repo.git``.

    Only the first two path segments are used, so deep links into a
    repository (``/tree/main/src``) resolve to the repository itself.

    Raises:
        InvalidReference: If the URL has no scheme/host or fewer than two
            non-empty path segments.
    """
    msg = f"Invalid repository URL: {url!r}"
    parsed = urlparse((url or "").strip())
    if not parsed.scheme or not parsed.netloc:
        raise InvalidReference(msg, url=url)

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise InvalidReference(msg, url=url)

    owner = parts[0]
    repo = parts[1].removesuffix(".git")
    if not owner or not repo:
        raise InvalidReference(msg, url=url)

    return RepoRef(owner=owner, repo=repo)
