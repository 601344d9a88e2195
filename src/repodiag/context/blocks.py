"""Context block definitions for the context bundle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BlockCategory(str, Enum):
    """Kind of content a context block holds."""

    METADATA = "metadata"
    IMPORTS = "imports"
    README = "readme"
    DOCS = "docs"
    API_SPEC = "api_spec"
    MANIFEST = "manifest"
    SOURCE = "source"


@dataclass
class ContextBlock:
    """A labelled unit of context text.

    Attributes:
        title: Section heading for the block.
        body: Content (facts, snippets, etc.).
        sources: Repository paths the block was derived from.
        category: Kind of content, assigned where the block is built.
    """

    title: str
    body: str
    sources: list[str] = field(default_factory=list)
    category: BlockCategory = BlockCategory.DOCS

    @property
    def is_empty(self) -> bool:
        return not self.body.strip()

    def render(self, *, include_sources: bool = False) -> str:
        """Render the block as markdown.

        Args:
            include_sources: Whether to append the source paths.

        Returns:
            Markdown string representation.
        """
        lines = [f"# {self.title}", "", self.body]

        if include_sources and self.sources:
            lines.append("")
            lines.append(f"_Source: {', '.join(self.sources)}_")

        return "\n".join(lines)
