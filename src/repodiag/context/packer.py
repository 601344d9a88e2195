"""Context packer with a hard character cap."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from repodiag.context.blocks import ContextBlock

logger = structlog.get_logger()

DEFAULT_CHAR_BUDGET = 120_000
SEPARATOR = "\n\n---\n\n"


@dataclass
class PackResult:
    """Result of packing context blocks.

    Attributes:
        content: Packed text, never longer than the budget.
        included_blocks: Blocks that start inside the budget.
        excluded_blocks: Blocks cut off entirely by the cap.
        truncated: Whether the cap cut anything.
    """

    content: str
    included_blocks: list[ContextBlock] = field(default_factory=list)
    excluded_blocks: list[ContextBlock] = field(default_factory=list)
    truncated: bool = False

    @property
    def total_chars(self) -> int:
        return len(self.content)


@dataclass
class ContextPacker:
    """Concatenates blocks in the order given, then hard-truncates.

    Unlike a priority packer, block order is the caller's fixed
    assembly order; the cap is applied to the joined text.

    Attributes:
        char_budget: Maximum characters in the packed text.
        separator: Text placed between rendered blocks.
    """

    char_budget: int = DEFAULT_CHAR_BUDGET
    separator: str = SEPARATOR

    def pack(self, blocks: list[ContextBlock]) -> PackResult:
        """Pack non-empty blocks within the budget."""
        blocks = [b for b in blocks if not b.is_empty]
        if not blocks:
            return PackResult(content="")

        included: list[ContextBlock] = []
        excluded: list[ContextBlock] = []
        parts: list[str] = []
        offset = 0

        for block in blocks:
            rendered = block.render()
            start = offset + (len(self.separator) if parts else 0)
            if start >= self.char_budget:
                excluded.append(block)
                continue
            parts.append(rendered)
            included.append(block)
            offset = start + len(rendered)

        joined = self.separator.join(parts)
        content = joined[: self.char_budget]
        truncated = len(joined) > self.char_budget or bool(excluded)

        if truncated:
            logger.debug(
                "Context text truncated",
                budget=self.char_budget,
                full_chars=len(joined),
                excluded_count=len(excluded),
            )

        return PackResult(
            content=content,
            included_blocks=included,
            excluded_blocks=excluded,
            truncated=truncated,
        )
