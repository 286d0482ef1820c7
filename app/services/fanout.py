from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from app.models.sources import SearchBundle
from app.tools import normalizer

SearchFn = Callable[[str, str], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class SearchCategories:
    general: str = "general"
    news: str = "news"
    images: str = "images"


async def _best_effort(
    search: SearchFn,
    query: str,
    category: str,
    normalize: Callable[[Any], list],
    label: str,
    request_id: str | None,
) -> list:
    # Covers both the call and normalization of its payload.
    try:
        return normalize(await search(query, category))
    except Exception as exc:
        logger.warning(
            f"{label} source unavailable | request_id={request_id} error={exc}"
        )
        return []


async def gather_search_bundle(
    query: str,
    search: SearchFn,
    *,
    categories: SearchCategories | None = None,
    request_id: str | None = None,
) -> SearchBundle:
    """Query general/news/images concurrently and normalize the results.

    The general category is required: its failure propagates. News and
    images are best-effort and become empty collections on failure.
    """
    categories = categories or SearchCategories()
    general, news, images = await asyncio.gather(
        search(query, categories.general),
        _best_effort(
            search, query, categories.news, normalizer.normalize_news, "news", request_id
        ),
        _best_effort(
            search, query, categories.images, normalizer.normalize_images, "images", request_id
        ),
    )
    bundle = SearchBundle(
        sources=normalizer.normalize_sources(general),
        news=news,
        images=images,
    )
    logger.info(
        f"Search fan-out complete | request_id={request_id} sources={len(bundle.sources)} "
        f"news={len(bundle.news)} images={len(bundle.images)}"
    )
    return bundle
