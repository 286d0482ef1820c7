from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


# --- Requests ---


class MessagePart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    text: str | None = None


class ChatMessage(BaseModel):
    """A conversation turn in either the parts-based or the plain-content shape."""

    model_config = ConfigDict(extra="allow")

    role: str
    content: str | None = None
    parts: list[MessagePart] | None = None

    def text(self) -> str:
        if self.parts is not None:
            return " ".join(p.text or "" for p in self.parts if p.type == "text")
        return self.content or ""

    def to_model_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.text()}


class SearchRequest(BaseModel):
    query: str | None = None
    messages: list[ChatMessage] = []

    def resolve_query(self) -> str:
        """The explicit query, else the text of the latest turn."""
        if self.query:
            return self.query
        if not self.messages:
            return ""
        return self.messages[-1].text().strip()


# --- Responses ---


class EnvCheckResponse(BaseModel):
    hasFirecrawlKey: bool
    hasFirecrawlBaseUrl: bool
    hasOpenAIKey: bool
    hasOpenAIBaseUrl: bool
    hasOpenAIModel: bool
    hasOpenAIApiMode: bool
    hasSearxngBaseUrl: bool


class ErrorResponse(BaseModel):
    error: str
    message: str | None = None
    details: dict[str, Any] | None = None
