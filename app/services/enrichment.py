from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from app.models.sources import Source
from app.tools.firecrawl_scraper import ScrapeResult

ScrapeFn = Callable[[str], Awaitable[ScrapeResult]]

DEFAULT_SCRAPE_LIMIT = 5


@dataclass(slots=True)
class EnrichmentReport:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0


def coerce_scrape_limit(value: Any, default: int = DEFAULT_SCRAPE_LIMIT) -> int:
    """Positive integer limit; anything unusable falls back to `default`."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed) or parsed <= 0:
        return default
    return max(1, math.floor(parsed))


async def enrich_sources(
    sources: list[Source],
    scrape: ScrapeFn,
    limit: int = DEFAULT_SCRAPE_LIMIT,
    *,
    request_id: str | None = None,
) -> EnrichmentReport:
    """Fetch full content for the first `limit` sources, in place.

    Each fetch settles independently. A successful fetch overwrites
    markdown/content only with non-empty values; the list itself (members,
    order, URLs) is never changed.
    """
    targets = sources[: max(1, limit)]
    report = EnrichmentReport(attempted=len(targets))
    if not targets:
        return report

    results = await asyncio.gather(
        *(scrape(source.url) for source in targets),
        return_exceptions=True,
    )

    # First occurrence wins for duplicate URLs.
    by_url: dict[str, Source] = {}
    for source in targets:
        by_url.setdefault(source.url, source)
    for target, result in zip(targets, results):
        if isinstance(result, BaseException):
            report.failed += 1
            logger.debug(
                f"Enrichment failed | request_id={request_id} url={target.url} error={result}"
            )
            continue
        match = by_url.get(result.url)
        if match is None:
            report.failed += 1
            continue
        match.markdown = result.markdown or match.markdown
        match.content = result.content or match.content
        report.succeeded += 1

    logger.info(
        f"Enrichment settled | request_id={request_id} attempted={report.attempted} "
        f"succeeded={report.succeeded} failed={report.failed}"
    )
    return report
