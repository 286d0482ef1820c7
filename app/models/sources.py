from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(slots=True)
class Source:
    """A web search result; markdown/content are filled by enrichment."""

    url: str
    title: str
    description: str | None = None
    content: str | None = None
    markdown: str | None = None
    published_date: str | None = None
    author: str | None = None
    image: str | None = None
    favicon: str | None = None
    site_name: str | None = None

    @property
    def best_content(self) -> str:
        return self.markdown or self.content or ""

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "url": self.url,
                "title": self.title,
                "description": self.description,
                "content": self.content,
                "markdown": self.markdown,
                "publishedDate": self.published_date,
                "author": self.author,
                "image": self.image,
                "favicon": self.favicon,
                "siteName": self.site_name,
            }
        )


@dataclass(slots=True)
class NewsItem:
    url: str
    title: str | None = None
    description: str | None = None
    published_date: str | None = None
    source: str | None = None
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "url": self.url,
                "title": self.title,
                "description": self.description,
                "publishedDate": self.published_date,
                "source": self.source,
                "image": self.image,
            }
        )


@dataclass(slots=True)
class ImageItem:
    url: str
    title: str
    thumbnail: str | None = None
    source: str | None = None
    width: int | None = None
    height: int | None = None
    position: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "url": self.url,
                "title": self.title,
                "thumbnail": self.thumbnail,
                "source": self.source,
                "width": self.width,
                "height": self.height,
                "position": self.position,
            }
        )


@dataclass(slots=True)
class SearchBundle:
    """Normalized results of one fan-out; `sources` order is citation order."""

    sources: list[Source] = field(default_factory=list)
    news: list[NewsItem] = field(default_factory=list)
    images: list[ImageItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": [s.to_dict() for s in self.sources],
            "newsResults": [n.to_dict() for n in self.news],
            "imageResults": [i.to_dict() for i in self.images],
        }


@dataclass(slots=True)
class ContextBlock:
    index: int
    title: str
    url: str
    excerpt: str

    def render(self) -> str:
        return f"[{self.index}] {self.title}\nURL: {self.url}\n{self.excerpt}"
