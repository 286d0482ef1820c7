"""Normalize provider-shaped search payloads into Source/NewsItem/ImageItem.

Providers (and different SearxNG engines) name the same attribute in
different ways. Each logical field is resolved through an ordered list of
candidate keys; the first present, non-empty value wins. Supporting a new
provider variant means adding a key to one of the tables below.
"""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from app.models.sources import ImageItem, NewsItem, Source
from app.tools.web_utils import build_favicon, build_host_info

SOURCE_FIELDS: dict[str, tuple[str, ...]] = {
    "url": ("url", "href", "link"),
    "title": ("title",),
    "description": ("content", "summary", "abstract"),
    "content": ("content",),
    "published_date": ("publishedDate", "published_date", "pubdate"),
    "author": ("author",),
    "image": ("img_src", "thumbnail", "image"),
}

NEWS_FIELDS: dict[str, tuple[str, ...]] = {
    "url": ("url", "link", "pageUrl", "sourceUrl"),
    "title": ("title",),
    "description": ("content", "summary", "description"),
    "published_date": (
        "date",
        "publishedDate",
        "published_at",
        "publishedAt",
        "published",
        "time",
    ),
    "source": ("source",),
    "image": (
        "imageUrl",
        "image_url",
        "image",
        "thumbnail",
        "thumbnailUrl",
        "img_src",
        "img",
        "img_srcset",
    ),
}

IMAGE_FIELDS: dict[str, tuple[str, ...]] = {
    "url": ("url", "link", "pageUrl", "sourceUrl", "img_src"),
    "title": ("title",),
    "thumbnail": (
        "imageUrl",
        "image_url",
        "image",
        "thumbnail",
        "thumbnailUrl",
        "img_src",
        "thumbnail_src",
    ),
    "width": ("imageWidth", "img_width", "width"),
    "height": ("imageHeight", "img_height", "height"),
    "position": ("position",),
}

# Where each category keeps its result list, in lookup order.
RESULT_KEYS: dict[str, tuple[str, ...]] = {
    "general": ("results",),
    "news": ("results", "news"),
    "images": ("results", "images"),
}


def _present(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float):
        # JSON like 1e400 decodes to inf.
        return math.isfinite(value)
    if isinstance(value, int):
        return True
    return False


def resolve_field(item: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    """Return the first present, non-empty value among `candidates`, else None."""
    for key in candidates:
        value = item.get(key)
        if _present(value):
            return value
    return None


def _resolve_str(item: Mapping[str, Any], candidates: Sequence[str]) -> str | None:
    value = resolve_field(item, candidates)
    return value if isinstance(value, str) else None


def _resolve_int(item: Mapping[str, Any], candidates: Sequence[str]) -> int | None:
    value = resolve_field(item, candidates)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def extract_results(payload: Any, keys: Sequence[str]) -> list[Any]:
    """Return the result list under the first key that holds a list."""
    if not isinstance(payload, Mapping):
        return []
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return []


def normalize_sources(payload: Any) -> list[Source]:
    sources: list[Source] = []
    for item in extract_results(payload, RESULT_KEYS["general"]):
        if not isinstance(item, Mapping):
            continue
        url = _resolve_str(item, SOURCE_FIELDS["url"])
        if not url:
            continue
        host_info = build_host_info(url)
        sources.append(
            Source(
                url=url,
                title=_resolve_str(item, SOURCE_FIELDS["title"]) or url,
                description=_resolve_str(item, SOURCE_FIELDS["description"]),
                content=_resolve_str(item, SOURCE_FIELDS["content"]),
                published_date=_resolve_str(item, SOURCE_FIELDS["published_date"]),
                author=_resolve_str(item, SOURCE_FIELDS["author"]),
                image=_resolve_str(item, SOURCE_FIELDS["image"]),
                favicon=build_favicon(host_info.host),
                site_name=host_info.site_name or host_info.host,
            )
        )
    return sources


def _first_engine(item: Mapping[str, Any]) -> str | None:
    engines = item.get("engines")
    if isinstance(engines, list) and engines and _present(engines[0]):
        return str(engines[0])
    return None


def normalize_news(payload: Any) -> list[NewsItem]:
    news: list[NewsItem] = []
    for item in extract_results(payload, RESULT_KEYS["news"]):
        if not isinstance(item, Mapping):
            continue
        url = _resolve_str(item, NEWS_FIELDS["url"])
        if not url:
            continue
        news.append(
            NewsItem(
                url=url,
                title=_resolve_str(item, NEWS_FIELDS["title"]),
                description=_resolve_str(item, NEWS_FIELDS["description"]),
                published_date=_resolve_str(item, NEWS_FIELDS["published_date"]),
                source=(
                    _resolve_str(item, NEWS_FIELDS["source"])
                    or _first_engine(item)
                    or build_host_info(url).site_name
                ),
                image=_resolve_str(item, NEWS_FIELDS["image"]),
            )
        )
    return news


def normalize_images(payload: Any) -> list[ImageItem]:
    images: list[ImageItem] = []
    for item in extract_results(payload, RESULT_KEYS["images"]):
        if not isinstance(item, Mapping):
            continue
        url = _resolve_str(item, IMAGE_FIELDS["url"])
        if not url:
            continue
        images.append(
            ImageItem(
                url=url,
                title=_resolve_str(item, IMAGE_FIELDS["title"]) or "Untitled",
                thumbnail=_resolve_str(item, IMAGE_FIELDS["thumbnail"]),
                source=build_host_info(url).site_name,
                width=_resolve_int(item, IMAGE_FIELDS["width"]),
                height=_resolve_int(item, IMAGE_FIELDS["height"]),
                position=_resolve_int(item, IMAGE_FIELDS["position"]),
            )
        )
    return images
