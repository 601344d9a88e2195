"""File selection heuristics over a repository tree snapshot.

Each heuristic is a named predicate plus a ``select_*`` function that
returns a bounded, deterministic slice of the tree. They only read the
snapshot they are given.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from repodiag.config import ContextLimits
from repodiag.host.models import RepoTree, TreeEntry

DOC_PREFIXES = ("docs/", "doc/", "architecture/", "Documentation/")
DOC_EXTENSIONS = frozenset({"md", "mdx", "txt"})
SOURCE_EXTENSIONS = frozenset({"ts", "tsx", "js", "py"})

_README_RE = re.compile(r"^readme.*$", re.IGNORECASE)
_API_SPEC_RE = re.compile(r"(^|/)[^/]*(openapi|swagger)[^/]*\.(ya?ml|json)$", re.IGNORECASE)
_REQUIREMENTS_RE = re.compile(r"^requirements.*\.txt$", re.IGNORECASE)
_PRIORITY_SOURCE_RE = re.compile(
    r"(^|/)src/(routes|controllers|services|db|migrations)/.+\.(ts|tsx|js|py)$"
)

Predicate = Callable[[TreeEntry], bool]


def is_readme(entry: TreeEntry) -> bool:
    return entry.is_blob and bool(_README_RE.match(entry.name))


def is_doc(entry: TreeEntry) -> bool:
    return (
        entry.is_blob
        and entry.path.startswith(DOC_PREFIXES)
        and entry.extension in DOC_EXTENSIONS
    )


def is_api_spec(entry: TreeEntry) -> bool:
    return entry.is_blob and bool(_API_SPEC_RE.search(entry.path))


def is_manifest(entry: TreeEntry) -> bool:
    if not entry.is_blob:
        return False
    name = entry.name
    return (
        name == "package.json"
        or name == "pyproject.toml"
        or bool(_REQUIREMENTS_RE.match(name))
    )


def is_priority_source(entry: TreeEntry) -> bool:
    return entry.is_blob and bool(_PRIORITY_SOURCE_RE.search(entry.path))


def is_source(entry: TreeEntry) -> bool:
    return entry.is_blob and entry.extension in SOURCE_EXTENSIONS


def take(entries: Iterable[TreeEntry], predicate: Predicate, limit: int) -> list[TreeEntry]:
    """Return the first ``limit`` entries matching ``predicate`` in tree order."""
    selected: list[TreeEntry] = []
    if limit <= 0:
        return selected
    for entry in entries:
        if predicate(entry):
            selected.append(entry)
            if len(selected) >= limit:
                break
    return selected


def select_readme(tree: RepoTree) -> TreeEntry | None:
    """First README, preferring the shallowest path."""
    candidates = [e for e in tree.entries if is_readme(e)]
    if not candidates:
        return None
    # sorted() is stable, so tree order breaks depth ties
    return sorted(candidates, key=lambda e: e.path.count("/"))[0]


def select_docs(tree: RepoTree, limit: int = 5) -> list[TreeEntry]:
    return take(tree.entries, is_doc, limit)


def select_api_specs(tree: RepoTree, limit: int = 2) -> list[TreeEntry]:
    return take(tree.entries, is_api_spec, limit)


def select_manifests(tree: RepoTree, limit: int = 4) -> list[TreeEntry]:
    return take(tree.entries, is_manifest, limit)


def select_priority_sources(tree: RepoTree, limit: int = 20) -> list[TreeEntry]:
    return take(tree.entries, is_priority_source, limit)


def select_largest_sources(tree: RepoTree, limit: int = 15) -> list[TreeEntry]:
    """Largest ts/tsx/js/py blobs by reported size, ties broken by path."""
    if limit <= 0:
        return []
    sources = [e for e in tree.entries if is_source(e)]
    sources.sort(key=lambda e: (-(e.size or 0), e.path))
    return sources[:limit]


@dataclass
class Selection:
    """All heuristic picks from one tree snapshot.

    Attributes:
        readme: README entry, if the tree has one.
        docs: Documentation files.
        api_specs: OpenAPI/Swagger documents.
        manifests: Package manifests.
        priority_sources: Route/controller/service/db source files.
        import_sample: Largest source files, used for the import index only.
    """

    readme: TreeEntry | None = None
    docs: list[TreeEntry] = field(default_factory=list)
    api_specs: list[TreeEntry] = field(default_factory=list)
    manifests: list[TreeEntry] = field(default_factory=list)
    priority_sources: list[TreeEntry] = field(default_factory=list)
    import_sample: list[TreeEntry] = field(default_factory=list)

    def content_entries(self) -> list[TreeEntry]:
        """Entries whose content goes into the context text, deduplicated.

        Order: README, docs, API specs, manifests, priority sources.
        """
        ordered = [self.readme] if self.readme else []
        ordered += self.docs + self.api_specs + self.manifests + self.priority_sources
        seen: set[str] = set()
        unique: list[TreeEntry] = []
        for entry in ordered:
            if entry.path not in seen:
                seen.add(entry.path)
                unique.append(entry)
        return unique


def select_all(tree: RepoTree, limits: ContextLimits | None = None) -> Selection:
    """Apply every heuristic in fixed priority order."""
    limits = limits or ContextLimits()
    return Selection(
        readme=select_readme(tree),
        docs=select_docs(tree, limits.docs_files),
        api_specs=select_api_specs(tree, limits.api_specs),
        manifests=select_manifests(tree, limits.manifests),
        priority_sources=select_priority_sources(tree, limits.priority_sources),
        import_sample=select_largest_sources(tree, limits.import_sample),
    )
