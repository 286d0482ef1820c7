from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncGenerator
from uuid import uuid4

from loguru import logger

from app import llm_client
from app.config import settings
from app.models.events import SSEEvent
from app.models.schemas import ChatMessage
from app.models.sources import SearchBundle
from app.services import streaming
from app.services.context_builder import build_context_blocks, format_context
from app.services.enrichment import ScrapeFn, coerce_scrape_limit, enrich_sources
from app.services.errors import describe_failure
from app.services.event_channel import EventChannel
from app.services.fanout import SearchCategories, SearchFn, gather_search_bundle
from app.services.followups import generate_followups
from app.services.prompt_store import render_prompt
from app.services.ticker import detect_company_ticker
from app.tools import firecrawl_scraper, searxng_search


def new_request_id() -> str:
    return uuid4().hex[:7]


class AnswerOrchestrator:
    """Answers one query and reports every step through an EventChannel.

    Flow:
      1. Fan out: general/news/images searches in parallel
      2. Enrich the leading web sources with full page content
      3. Select query-relevant excerpts and build the cited context
      4. Stream the answer
      5. Generate follow-up questions (best-effort)

    A failure anywhere outside step 5 ends the request with a single
    terminal error event; the channel is always closed normally.
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        search: SearchFn | None = None,
        scrape: ScrapeFn | None = None,
        generator: Any | None = None,
        request_id: str | None = None,
    ):
        self.request_id = request_id or new_request_id()
        self.search = search or searxng_search.search
        self.scrape = scrape or firecrawl_scraper.scrape
        if generator is None:
            generator = llm_client.get_client(model) if model else llm_client.client()
        self.generator = generator
        self.scrape_limit = coerce_scrape_limit(settings.firecrawl_scrape_limit)
        self.context_budget = max(int(settings.context_char_budget), 1)
        self.temperature = float(settings.generation_temperature)
        self.categories = SearchCategories(
            general=settings.searxng_general_category or "general",
            news=settings.searxng_news_category or "news",
            images=settings.searxng_images_category or "images",
        )

    async def run(
        self,
        query: str,
        channel: EventChannel,
        messages: list[ChatMessage] | None = None,
    ) -> None:
        history = messages or []
        started = time.monotonic()
        try:
            await self._answer(query, history, channel)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(
                f"Search execution error | request_id={self.request_id} error={exc}"
            )
            channel.write(streaming.error(describe_failure(exc)))
        finally:
            channel.close()
            logger.info(
                f"Request finished | request_id={self.request_id} "
                f"errored={channel.errored} runtime_ms={int((time.monotonic() - started) * 1000)}"
            )

    async def _answer(
        self,
        query: str,
        history: list[ChatMessage],
        channel: EventChannel,
    ) -> None:
        is_followup = len(history) > 2

        channel.write(streaming.status("status-1", "Starting search..."))
        channel.write(streaming.status("status-2", "Searching for relevant sources..."))

        bundle = await gather_search_bundle(
            query,
            self.search,
            categories=self.categories,
            request_id=self.request_id,
        )
        channel.write(streaming.sources(bundle))

        if bundle.sources:
            channel.write(streaming.status("status-3a", "Fetching full article content..."))
            await enrich_sources(
                bundle.sources,
                self.scrape,
                self.scrape_limit,
                request_id=self.request_id,
            )
            channel.write(streaming.sources(bundle))
            channel.write(streaming.status("status-2b", "Analyzing detailed content..."))

        channel.write(
            streaming.status("status-3", "Analyzing sources and generating answer...")
        )

        symbol = detect_company_ticker(query)
        if symbol:
            channel.write(streaming.ticker(symbol))

        context = format_context(
            build_context_blocks(bundle.sources, query, self.context_budget)
        )
        answer = await self._stream_answer(
            self.build_messages(query, context, history, is_followup=is_followup),
            channel,
        )
        await self._emit_followups(query, answer, bundle, channel, is_followup=is_followup)

    @staticmethod
    def build_messages(
        query: str,
        context: str,
        history: list[ChatMessage],
        *,
        is_followup: bool,
    ) -> list[dict[str, str]]:
        """System prompt, prior turns (follow-up mode only), then the query with context."""
        prompt_key = "answer.followup_system" if is_followup else "answer.initial_system"
        messages = [{"role": "system", "content": render_prompt(prompt_key)}]
        if is_followup:
            for turn in history[:-1]:
                converted = turn.to_model_message()
                if converted["content"]:
                    messages.append(converted)
        messages.append(
            {
                "role": "user",
                "content": render_prompt("answer.user", query=query, context=context),
            }
        )
        return messages

    async def _stream_answer(
        self,
        messages: list[dict[str, str]],
        channel: EventChannel,
    ) -> str:
        stream = self.generator.stream_text(
            messages, temperature=self.temperature, request_id=self.request_id
        )

        async def answer_events() -> AsyncGenerator[SSEEvent, None]:
            yield streaming.text_start()
            async for delta in stream.text_stream:
                yield streaming.text_delta(delta)
            yield streaming.text_end()

        await channel.merge(answer_events())
        return stream.text

    async def _emit_followups(
        self,
        query: str,
        answer: str,
        bundle: SearchBundle,
        channel: EventChannel,
        *,
        is_followup: bool,
    ) -> None:
        try:
            questions = await generate_followups(
                self.generator,
                query=query,
                answer=answer,
                source_titles=[source.title for source in bundle.sources],
                is_followup=is_followup,
                request_id=self.request_id,
            )
        except Exception as exc:
            logger.debug(
                f"Follow-up generation skipped | request_id={self.request_id} error={exc}"
            )
            return
        channel.write(streaming.followup(questions))
