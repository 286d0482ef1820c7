"""OpenAI-compatible generation client with streaming and one-shot calls."""
from __future__ import annotations

import time
from typing import Any, AsyncIterator, Callable

import openai

from app.config import settings
from app.services.errors import GenerationError
from app.services.logger import log_llm_call

Message = dict[str, str]

CHAT_MODES = {"chat", "chat-completions"}
COMPLETION_MODES = {"completions", "completion"}


def wrap_error(exc: Exception) -> GenerationError:
    """Normalize SDK failures into a GenerationError with an HTTP status when known."""
    if isinstance(exc, GenerationError):
        return exc
    status_code: int | None = None
    if isinstance(exc, openai.APITimeoutError):
        status_code = 504
    elif isinstance(exc, openai.APIStatusError):
        status_code = exc.status_code
    return GenerationError(str(exc) or exc.__class__.__name__, status_code=status_code)


def _messages_to_prompt(messages: list[Message]) -> str:
    lines = [f"{m['role']}: {m['content']}" for m in messages]
    lines.append("assistant:")
    return "\n\n".join(lines)


def _chat_delta(chunk: Any) -> str | None:
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return None
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) if delta else None


def _completion_delta(chunk: Any) -> str | None:
    choices = getattr(chunk, "choices", None) or []
    return getattr(choices[0], "text", None) if choices else None


def _responses_delta(event: Any) -> str | None:
    event_type = getattr(event, "type", "")
    if event_type == "response.output_text.delta":
        return getattr(event, "delta", None)
    if event_type in ("error", "response.failed"):
        message = getattr(event, "message", None) or "Generation failed"
        raise GenerationError(str(message))
    return None


class TextStream:
    """Incremental text of one generation; `text` holds everything received so far."""

    def __init__(
        self,
        stream_coro: Any,
        extract_delta: Callable[[Any], str | None],
        *,
        model: str,
        caller: str = "answer",
        request_id: str | None = None,
    ):
        self._stream_coro = stream_coro
        self._extract_delta = extract_delta
        self._model = model
        self._caller = caller
        self._request_id = request_id
        self._parts: list[str] = []

    async def _iter_text(self) -> AsyncIterator[str]:
        started = time.monotonic()
        stream = None
        try:
            stream = await self._stream_coro
            async for chunk in stream:
                text = self._extract_delta(chunk)
                if text:
                    self._parts.append(text)
                    yield text
        except (openai.OpenAIError, GenerationError) as exc:
            error = wrap_error(exc)
            log_llm_call(
                self._model,
                self._caller,
                duration_ms=int((time.monotonic() - started) * 1000),
                status="error",
                error=error.message,
                request_id=self._request_id,
            )
            if error is exc:
                raise
            raise error from exc
        finally:
            # Also runs on aclose() when the consumer stops early.
            if stream is not None:
                await stream.close()
        log_llm_call(
            self._model,
            self._caller,
            duration_ms=int((time.monotonic() - started) * 1000),
            request_id=self._request_id,
        )

    @property
    def text_stream(self) -> AsyncIterator[str]:
        return self._iter_text()

    @property
    def text(self) -> str:
        return "".join(self._parts)


class GenerationClient:
    def __init__(
        self,
        openai_client: Any,
        *,
        model: str,
        api_mode: str = "responses",
        temperature: float = 0.7,
    ):
        self._client = openai_client
        self.model = model
        self.api_mode = (api_mode or "responses").lower().strip()
        self.temperature = temperature

    def stream_text(
        self,
        messages: list[Message],
        *,
        temperature: float | None = None,
        caller: str = "answer",
        request_id: str | None = None,
    ) -> TextStream:
        temp = self.temperature if temperature is None else temperature
        if self.api_mode in CHAT_MODES:
            coro = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temp,
                stream=True,
            )
            extract = _chat_delta
        elif self.api_mode in COMPLETION_MODES:
            coro = self._client.completions.create(
                model=self.model,
                prompt=_messages_to_prompt(messages),
                temperature=temp,
                stream=True,
            )
            extract = _completion_delta
        else:
            coro = self._client.responses.create(
                model=self.model,
                input=messages,
                temperature=temp,
                stream=True,
            )
            extract = _responses_delta
        return TextStream(
            coro, extract, model=self.model, caller=caller, request_id=request_id
        )

    async def generate_text(
        self,
        messages: list[Message],
        *,
        temperature: float | None = None,
        caller: str = "followups",
        request_id: str | None = None,
    ) -> str:
        temp = self.temperature if temperature is None else temperature
        started = time.monotonic()
        try:
            if self.api_mode in CHAT_MODES:
                response = await self._client.chat.completions.create(
                    model=self.model, messages=messages, temperature=temp
                )
                text = response.choices[0].message.content or ""
            elif self.api_mode in COMPLETION_MODES:
                response = await self._client.completions.create(
                    model=self.model,
                    prompt=_messages_to_prompt(messages),
                    temperature=temp,
                )
                text = response.choices[0].text or ""
            else:
                response = await self._client.responses.create(
                    model=self.model, input=messages, temperature=temp
                )
                text = response.output_text or ""
        except openai.OpenAIError as exc:
            error = wrap_error(exc)
            log_llm_call(
                self.model,
                caller,
                duration_ms=int((time.monotonic() - started) * 1000),
                status="error",
                error=error.message,
                request_id=request_id,
            )
            raise error from exc

        log_llm_call(
            self.model,
            caller,
            duration_ms=int((time.monotonic() - started) * 1000),
            request_id=request_id,
        )
        return text


def get_client(model: str | None = None) -> GenerationClient:
    """Build a generation client from settings."""
    openai_client = openai.AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url.strip() or None,
        max_retries=max(int(settings.generation_max_retries), 0),
        timeout=settings.http_timeout_seconds * 4,
    )
    return GenerationClient(
        openai_client,
        model=model or get_model(),
        api_mode=settings.openai_api_mode,
        temperature=settings.generation_temperature,
    )


def get_model() -> str:
    return settings.openai_model.strip() or "gpt-4o-mini"


_client: GenerationClient | None = None


def client() -> GenerationClient:
    """Get or create the default generation client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
