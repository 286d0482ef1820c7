"""Tests for the answer pipeline."""
import asyncio
import json

import httpx
import pytest

from app.agents.orchestrator import AnswerOrchestrator
from app.models.events import EventType
from app.models.schemas import ChatMessage
from app.services.errors import GenerationError, ScrapeError
from app.services.event_channel import EventChannel
from app.tools.firecrawl_scraper import ScrapeResult

PARIS = {
    "url": "https://en.wikipedia.org/wiki/Paris",
    "title": "Paris",
    "content": "Paris is the capital and most populous city of France.",
}


class FakeStream:
    def __init__(self, chunks, error=None):
        self._chunks = chunks
        self._error = error
        self._parts = []

    async def _iter(self):
        for chunk in self._chunks:
            self._parts.append(chunk)
            yield chunk
        if self._error:
            raise self._error

    @property
    def text_stream(self):
        return self._iter()

    @property
    def text(self):
        return "".join(self._parts)


class FakeGenerator:
    def __init__(self, chunks=None, followup_reply="What is the population of Paris?", followup_error=None, stream_error=None):
        self.chunks = chunks if chunks is not None else ["Paris is the capital of France ", "[1]."]
        self.followup_reply = followup_reply
        self.followup_error = followup_error
        self.stream_error = stream_error
        self.stream_calls = []
        self.generate_calls = []
        self.request_ids = []

    def stream_text(self, messages, *, temperature=None, caller="answer", request_id=None):
        self.request_ids.append(request_id)
        self.stream_calls.append(messages)
        return FakeStream(self.chunks, self.stream_error)

    async def generate_text(self, messages, *, temperature=None, caller="followups", request_id=None):
        self.request_ids.append(request_id)
        self.generate_calls.append(messages)
        if self.followup_error:
            raise self.followup_error
        return self.followup_reply


def make_search(general=None, news=None, images=None, failures=None):
    payloads = {
        "general": {"results": general or []},
        "news": {"results": news or []},
        "images": {"results": images or []},
    }
    failures = failures or {}
    calls = []

    async def search(query, category):
        calls.append((query, category))
        if category in failures:
            raise failures[category]
        return payloads[category]

    search.calls = calls
    return search


async def no_content_scrape(url):
    return ScrapeResult(url=url)


async def run_pipeline(orchestrator, query, messages=None):
    channel = EventChannel()
    await orchestrator.run(query, channel, messages)
    return [event async for event in channel]


def of_type(events, event_type):
    return [e for e in events if e.event is event_type]


class TestAnswerFlow:
    @pytest.mark.asyncio
    async def test_single_source_answer_is_cited(self):
        generator = FakeGenerator()
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "What is the capital of France?")

        user_prompt = generator.stream_calls[0][-1]["content"]
        assert (
            "[1] Paris\nURL: https://en.wikipedia.org/wiki/Paris\n"
            "Paris is the capital and most populous city of France."
        ) in user_prompt
        answer = "".join(e.data["delta"] for e in of_type(events, EventType.TEXT_DELTA))
        assert "[1]" in answer
        assert of_type(events, EventType.ERROR) == []

    @pytest.mark.asyncio
    async def test_event_order(self):
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=FakeGenerator(),
        )

        events = await run_pipeline(orchestrator, "capital of France")

        durable = [e.event for e in events if e.event is not EventType.STATUS]
        assert durable == [
            EventType.SOURCES,
            EventType.SOURCES,
            EventType.TEXT_START,
            EventType.TEXT_DELTA,
            EventType.TEXT_DELTA,
            EventType.TEXT_END,
            EventType.FOLLOWUP,
        ]
        status_ids = [e.id for e in of_type(events, EventType.STATUS)]
        assert status_ids == ["status-1", "status-2", "status-3a", "status-2b", "status-3"]

    @pytest.mark.asyncio
    async def test_second_sources_snapshot_carries_enriched_content(self):
        async def scrape(url):
            return ScrapeResult(url=url, markdown="# Paris\n\nFull article.")

        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=scrape,
            generator=FakeGenerator(),
        )

        events = await run_pipeline(orchestrator, "Paris")

        first, second = of_type(events, EventType.SOURCES)
        assert "markdown" not in first.data["sources"][0]
        assert second.data["sources"][0]["markdown"] == "# Paris\n\nFull article."

    @pytest.mark.asyncio
    async def test_enrichment_failure_keeps_snippet_context(self):
        async def scrape(url):
            raise ScrapeError("Insufficient credits", status_code=402)

        generator = FakeGenerator()
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "Paris")

        assert of_type(events, EventType.ERROR) == []
        assert "most populous city" in generator.stream_calls[0][-1]["content"]

    @pytest.mark.asyncio
    async def test_news_failure_still_answers(self):
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS], failures={"news": httpx.ConnectError("down")}),
            scrape=no_content_scrape,
            generator=FakeGenerator(),
        )

        events = await run_pipeline(orchestrator, "Paris")

        assert of_type(events, EventType.SOURCES)[0].data["newsResults"] == []
        assert of_type(events, EventType.TEXT_END)
        assert of_type(events, EventType.ERROR) == []

    @pytest.mark.asyncio
    async def test_ticker_emitted_for_company_query(self):
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=FakeGenerator(),
        )

        events = await run_pipeline(orchestrator, "What is Apple's stock price?")

        tickers = of_type(events, EventType.TICKER)
        assert [t.data["symbol"] for t in tickers] == ["NASDAQ:AAPL"]

    @pytest.mark.asyncio
    async def test_followup_questions_parsed(self):
        generator = FakeGenerator(followup_reply="1. Population?\n2. History?\n\n- Landmarks?")
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "Paris")

        followup = of_type(events, EventType.FOLLOWUP)[0]
        assert followup.data["questions"] == ["Population?", "History?", "Landmarks?"]


class TestNoResults:
    @pytest.mark.asyncio
    async def test_greeting_without_results(self):
        generator = FakeGenerator(chunks=["Hello! How can I help?"], followup_reply="")
        search = make_search()
        orchestrator = AnswerOrchestrator(
            search=search,
            scrape=no_content_scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "hi")

        assert len(of_type(events, EventType.SOURCES)) == 1
        assert "status-3a" not in [e.id for e in events]
        assert of_type(events, EventType.FOLLOWUP)[0].data["questions"] == []
        assert of_type(events, EventType.ERROR) == []
        assert generator.stream_calls[0][-1]["content"].endswith("Based on these sources:\n")


class TestFailures:
    @pytest.mark.asyncio
    async def test_general_search_failure_is_single_terminal_error(self):
        generator = FakeGenerator()
        orchestrator = AnswerOrchestrator(
            search=make_search(failures={"general": httpx.ConnectError("Network is unreachable")}),
            scrape=no_content_scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "anything")

        errors = of_type(events, EventType.ERROR)
        assert len(errors) == 1
        assert errors[0].data["error"] == "Network is unreachable"
        assert errors[0] is events[-1]
        assert of_type(events, EventType.SOURCES) == []
        assert of_type(events, EventType.TEXT_DELTA) == []
        assert generator.stream_calls == []

    @pytest.mark.asyncio
    async def test_rate_limited_generation_maps_to_known_error(self):
        generator = FakeGenerator(
            chunks=["Partial "],
            stream_error=GenerationError("429 Too Many Requests", status_code=429),
        )
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=generator,
        )

        events = await run_pipeline(orchestrator, "Paris")

        error = of_type(events, EventType.ERROR)[0]
        assert error.data == {
            "error": "Rate limit exceeded",
            "suggestion": "Too many requests. Please wait a moment and try again.",
            "statusCode": 429,
        }
        assert events[-1] is error
        assert of_type(events, EventType.TEXT_END) == []
        assert generator.generate_calls == []

    @pytest.mark.asyncio
    async def test_followup_failure_is_swallowed(self):
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=FakeGenerator(followup_error=GenerationError("boom", status_code=500)),
        )

        events = await run_pipeline(orchestrator, "Paris")

        assert of_type(events, EventType.FOLLOWUP) == []
        assert of_type(events, EventType.ERROR) == []
        assert events[-1].event is EventType.TEXT_END

    @pytest.mark.asyncio
    async def test_cancellation_closes_channel(self):
        release = asyncio.Event()

        async def slow_search(query, category):
            await release.wait()
            return {"results": []}

        orchestrator = AnswerOrchestrator(
            search=slow_search,
            scrape=no_content_scrape,
            generator=FakeGenerator(),
        )
        channel = EventChannel()
        task = asyncio.create_task(orchestrator.run("slow", channel))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert channel.closed
        assert not channel.errored


class TestConversation:
    @pytest.mark.asyncio
    async def test_followup_mode_includes_prior_turns(self):
        generator = FakeGenerator()
        search = make_search(general=[PARIS])
        orchestrator = AnswerOrchestrator(
            search=search,
            scrape=no_content_scrape,
            generator=generator,
        )
        history = [
            ChatMessage(role="user", content="What is the capital of France?"),
            ChatMessage(role="assistant", parts=[{"type": "text", "text": "Paris [1]."}]),
            ChatMessage(role="user", content="How big is it?"),
        ]

        await run_pipeline(orchestrator, "How big is it?", history)

        messages = generator.stream_calls[0]
        assert "continuing our conversation" in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "What is the capital of France?"}
        assert messages[2] == {"role": "assistant", "content": "Paris [1]."}
        assert messages[3]["content"].startswith('Answer this query: "How big is it?"')
        assert search.calls[0] == ("How big is it?", "general")
        followup_system = generator.generate_calls[0][0]["content"]
        assert "avoid repeating previous questions" in followup_system

    @pytest.mark.asyncio
    async def test_short_history_uses_initial_prompt(self):
        generator = FakeGenerator()
        orchestrator = AnswerOrchestrator(
            search=make_search(general=[PARIS]),
            scrape=no_content_scrape,
            generator=generator,
        )
        history = [ChatMessage(role="user", content="Paris?")]

        await run_pipeline(orchestrator, "Paris?", history)

        messages = generator.stream_calls[0]
        assert len(messages) == 2
        assert "helps users find information" in messages[0]["content"]


def test_sources_payload_is_json_serializable():
    orchestrator_events = AnswerOrchestrator(
        search=make_search(general=[PARIS]),
        scrape=no_content_scrape,
        generator=FakeGenerator(),
    )
    events = asyncio.run(run_pipeline(orchestrator_events, "Paris"))

    for event in events:
        json.loads(event.to_sse()["data"])


@pytest.mark.asyncio
async def test_request_id_reaches_generation_calls():
    generator = FakeGenerator()
    orchestrator = AnswerOrchestrator(
        search=make_search(general=[PARIS]),
        scrape=no_content_scrape,
        generator=generator,
        request_id="req1234",
    )

    await run_pipeline(orchestrator, "Paris")

    assert generator.request_ids == ["req1234", "req1234"]


@pytest.mark.asyncio
async def test_infinite_image_dimension_still_answers():
    images = json.loads('[{"url": "https://a.com/x.png", "imageWidth": 1e400}]')
    orchestrator = AnswerOrchestrator(
        search=make_search(general=[PARIS], images=images),
        scrape=no_content_scrape,
        generator=FakeGenerator(),
    )

    events = await run_pipeline(orchestrator, "Paris")

    assert of_type(events, EventType.ERROR) == []
    assert of_type(events, EventType.TEXT_END)
    image = of_type(events, EventType.SOURCES)[0].data["imageResults"][0]
    assert "width" not in image
