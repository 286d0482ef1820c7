from __future__ import annotations

from app.models.sources import ContextBlock, Source
from app.services.relevance import select_relevant_content

BLOCK_SEPARATOR = "\n\n---\n\n"
DEFAULT_CONTEXT_BUDGET = 2000


def build_context_blocks(
    sources: list[Source],
    query: str,
    budget: int = DEFAULT_CONTEXT_BUDGET,
) -> list[ContextBlock]:
    """One block per source; block i carries citation marker [i + 1]."""
    return [
        ContextBlock(
            index=position,
            title=source.title,
            url=source.url,
            excerpt=select_relevant_content(source.best_content, query, budget),
        )
        for position, source in enumerate(sources, start=1)
    ]


def format_context(blocks: list[ContextBlock]) -> str:
    return BLOCK_SEPARATOR.join(block.render() for block in blocks)
