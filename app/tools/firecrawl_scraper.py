from __future__ import annotations

from dataclasses import dataclass

import httpx

from app.config import settings
from app.services.errors import ScrapeError
from app.tools import web_utils


@dataclass
class ScrapeResult:
    url: str
    markdown: str | None = None
    content: str | None = None


async def scrape(url: str) -> ScrapeResult:
    """Fetch the main content of a page as markdown via the Firecrawl scrape API."""
    if not web_utils.is_valid_url(url):
        raise ScrapeError(f"Invalid URL: {url}")

    endpoint = f"{settings.firecrawl_root}/v1/scrape"
    headers = {"Content-Type": "application/json"}
    if settings.firecrawl_api_key:
        headers["Authorization"] = f"Bearer {settings.firecrawl_api_key}"

    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.post(
                endpoint,
                json={
                    "url": url,
                    "formats": ["markdown"],
                    "onlyMainContent": True,
                },
                headers=headers,
            )
    except httpx.HTTPError as exc:
        raise ScrapeError(f"Firecrawl request failed for {url}: {exc}") from exc

    if response.is_error:
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("error") if isinstance(body, dict) else None
        raise ScrapeError(
            str(detail or response.reason_phrase or f"HTTP {response.status_code}"),
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ScrapeError(f"Firecrawl returned a non-JSON response for {url}") from exc

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        data = {}
    return ScrapeResult(
        url=url,
        markdown=data.get("markdown") or None,
        content=data.get("content") or None,
    )
