from __future__ import annotations

from typing import Any

from app.models.events import EventType, SSEEvent
from app.models.sources import SearchBundle

SOURCES_ID = "sources-1"
TICKER_ID = "ticker-1"
TEXT_ID = "text-1"
FOLLOWUP_ID = "followup-1"
ERROR_ID = "error-1"


def status(status_id: str, message: str) -> SSEEvent:
    """Transient progress hint."""
    return SSEEvent(
        event=EventType.STATUS,
        id=status_id,
        data={"message": message},
        transient=True,
    )


def sources(bundle: SearchBundle) -> SSEEvent:
    """Snapshot of the search bundle; later snapshots replace earlier ones."""
    return SSEEvent(event=EventType.SOURCES, id=SOURCES_ID, data=bundle.to_dict())


def ticker(symbol: str) -> SSEEvent:
    return SSEEvent(event=EventType.TICKER, id=TICKER_ID, data={"symbol": symbol})


def text_start(text_id: str = TEXT_ID) -> SSEEvent:
    return SSEEvent(event=EventType.TEXT_START, id=text_id)


def text_delta(delta: str, text_id: str = TEXT_ID) -> SSEEvent:
    return SSEEvent(event=EventType.TEXT_DELTA, id=text_id, data={"delta": delta})


def text_end(text_id: str = TEXT_ID) -> SSEEvent:
    return SSEEvent(event=EventType.TEXT_END, id=text_id)


def followup(questions: list[str]) -> SSEEvent:
    return SSEEvent(
        event=EventType.FOLLOWUP,
        id=FOLLOWUP_ID,
        data={"questions": questions},
    )


def error(payload: dict[str, Any]) -> SSEEvent:
    """Terminal error; payload carries `error` plus optional suggestion/statusCode."""
    return SSEEvent(event=EventType.ERROR, id=ERROR_ID, data=payload)
