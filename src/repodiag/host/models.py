"""Data types returned by the host client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntryKind(str, Enum):
    """Kind of a tree node."""

    BLOB = "blob"
    TREE = "tree"


@dataclass(frozen=True)
class TreeEntry:
    """One node of a repository's flattened file tree.

    Attributes:
        path: Path relative to the repository root.
        kind: Blob (file) or tree (directory).
        size: Byte size reported by the host (blobs only).
        raw_url: Raw-content URL for the entry at the resolved branch.
    """

    path: str
    kind: EntryKind
    size: int | None = None
    raw_url: str = ""

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> str:
        """Lowercase extension without the dot, or an empty string."""
        name = self.name
        if "." not in name.lstrip("."):
            return ""
        return name.rsplit(".", 1)[-1].lower()

    @property
    def is_blob(self) -> bool:
        return self.kind is EntryKind.BLOB


@dataclass(frozen=True)
class RepoTree:
    """Snapshot of the recursive tree at one commit.

    Attributes:
        sha: Commit the tree was resolved from.
        entries: Tree nodes in host order.
        truncated: Whether the host cut the listing short.
    """

    sha: str
    entries: tuple[TreeEntry, ...] = ()
    truncated: bool = False


@dataclass(frozen=True)
class RepoInfo:
    """Repository metadata needed to build a context bundle.

    Attributes:
        default_branch: Name of the default branch.
        languages: Language names by descending byte count.
        description: Repository description, if any.
    """

    default_branch: str
    languages: tuple[str, ...] = ()
    description: str = ""
