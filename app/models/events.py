from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    STATUS = "status"
    SOURCES = "sources"
    TICKER = "ticker"
    TEXT_START = "text-start"
    TEXT_DELTA = "text-delta"
    TEXT_END = "text-end"
    FOLLOWUP = "followup"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    # Transient events are UI hints; consumers may drop them.
    transient: bool = False

    def to_sse(self) -> dict[str, str]:
        message = {"event": self.event.value, "data": json.dumps(self.data)}
        if self.id:
            message["id"] = self.id
        return message
