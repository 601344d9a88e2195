"""Repository context bundle - bounded summary of a hosted repository.

Key components:
- selection: named heuristics picking docs, specs, manifests and sources
- manifests: per-category post-processing of fetched content
- imports: import index over the largest source files
- ContextPacker: fixed-order assembly under a hard character cap
- RepositoryContextBuilder: main entry point coordinating the above
"""

from repodiag.context.blocks import BlockCategory, ContextBlock
from repodiag.context.builder import (
    ContextBundle,
    RepoMetadata,
    RepositoryContextBuilder,
)
from repodiag.context.imports import ImportRecord
from repodiag.context.packer import ContextPacker

__all__ = [
    "BlockCategory",
    "ContextBlock",
    "ContextBundle",
    "ContextPacker",
    "ImportRecord",
    "RepoMetadata",
    "RepositoryContextBuilder",
]
