"""Code host access: URL parsing, REST client and tree types."""

from repodiag.host.client import GitHubClient
from repodiag.host.models import EntryKind, RepoInfo, RepoTree, TreeEntry
from repodiag.host.refs import RepoRef, parse_repo_url

__all__ = [
    "EntryKind",
    "GitHubClient",
    "RepoInfo",
    "RepoRef",
    "RepoTree",
    "TreeEntry",
    "parse_repo_url",
]
