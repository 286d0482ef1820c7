from __future__ import annotations

from typing import Any

import httpx

from app.config import settings
from app.services.errors import SearchServiceError


def build_params(query: str, category: str | None) -> dict[str, str]:
    params: dict[str, str] = {"q": query, "format": "json"}
    if category:
        params["categories"] = category
    if settings.searxng_language:
        params["language"] = settings.searxng_language
    if settings.searxng_safesearch:
        params["safesearch"] = settings.searxng_safesearch
    if settings.searxng_api_key:
        params["api_key"] = settings.searxng_api_key
    return params


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or f"HTTP {response.status_code}"


async def search(query: str, category: str | None = None) -> dict[str, Any]:
    """Run one SearxNG query and return its raw JSON payload."""
    if not settings.searxng_root:
        raise SearchServiceError("SearxNG base URL not configured")

    endpoint = f"{settings.searxng_root}/search"
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.get(
                endpoint,
                params=build_params(query, category),
                headers={"Accept": "application/json"},
            )
    except httpx.TimeoutException as exc:
        raise SearchServiceError(f"SearxNG search timed out: {exc}", status_code=504) from exc
    except httpx.HTTPError as exc:
        raise SearchServiceError(f"SearxNG search error: {exc}") from exc

    if response.is_error:
        raise SearchServiceError(
            f"SearxNG search error: {_error_detail(response)}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise SearchServiceError("SearxNG returned a non-JSON response") from exc
    return payload or {}
