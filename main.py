"""QuickCite - search-grounded answers with citations

Simple CLI for asking a single question.
"""

import argparse
import asyncio
import sys

from app.agents.orchestrator import AnswerOrchestrator
from app.config import settings
from app.services import logger as _log_setup  # noqa: F401
from app.services.errors import ConfigurationError
from app.services.event_channel import EventChannel


async def run_query(query: str, model: str | None = None) -> int:
    """Answer the query, printing events as they arrive. Returns an exit code."""
    print(f"Query: {query}")
    print("-" * 50)

    orchestrator = AnswerOrchestrator(model=model)
    channel = EventChannel(transient_backlog=settings.transient_event_backlog)
    task = asyncio.create_task(orchestrator.run(query, channel))

    sources: list[dict] = []
    exit_code = 0
    async for event in channel:
        event_type = event.event.value
        data = event.data

        if event_type == "status":
            print(f"[~] {data.get('message', '')}")

        elif event_type == "sources":
            sources = data.get("sources", [])

        elif event_type == "ticker":
            print(f"[$] Ticker: {data.get('symbol')}")

        elif event_type == "text-start":
            print()

        elif event_type == "text-delta":
            print(data.get("delta", ""), end="", flush=True)

        elif event_type == "text-end":
            print("\n")
            if sources:
                print("Sources:")
                for i, source in enumerate(sources, 1):
                    print(f"  [{i}] {source.get('title', '')} - {source.get('url', '')}")

        elif event_type == "followup":
            questions = data.get("questions", [])
            if questions:
                print("\nFollow-up questions:")
                for question in questions:
                    print(f"  - {question}")

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('error', 'Unknown error')}")
            if data.get("suggestion"):
                print(f"    {data['suggestion']}")
            exit_code = 1

    await task
    return exit_code


def main():
    parser = argparse.ArgumentParser(description="QuickCite search-grounded answers")
    parser.add_argument("query", help="Question to answer")
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")

    args = parser.parse_args()

    try:
        settings.require_configured()
    except ConfigurationError as exc:
        print(f"[!] {exc.message}")
        sys.exit(2)

    sys.exit(asyncio.run(run_query(args.query, args.model)))


if __name__ == "__main__":
    main()
