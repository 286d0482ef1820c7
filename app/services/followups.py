from __future__ import annotations

import re
from typing import Any

from app.services.prompt_store import render_prompt

MAX_FOLLOWUPS = 5
ANSWER_PREVIEW_CHARS = 500

_LIST_MARKER_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")
_DECLINE_RE = re.compile(
    r"^(?:none|n/a|no follow[- ]?ups?(?: questions?)?(?: needed)?|no questions?)\.?$",
    re.IGNORECASE,
)


def parse_followups(text: str, limit: int = MAX_FOLLOWUPS) -> list[str]:
    """Split a model reply into at most `limit` non-empty question lines.

    Replies that decline to produce follow-ups ("none", "no follow-ups")
    yield an empty list.
    """
    questions: list[str] = []
    for line in (text or "").split("\n"):
        line = _LIST_MARKER_RE.sub("", line.strip()).strip()
        if not line or _DECLINE_RE.match(line):
            continue
        questions.append(line)
    return questions[:limit]


def build_followup_messages(
    query: str,
    answer: str,
    source_titles: list[str],
    *,
    is_followup: bool,
) -> list[dict[str, str]]:
    sources_line = (
        f"Available sources about: {', '.join(source_titles)}\n\n" if source_titles else ""
    )
    return [
        {
            "role": "system",
            "content": render_prompt(
                "followups.system",
                history_hint=render_prompt("followups.history_hint") if is_followup else "",
            ),
        },
        {
            "role": "user",
            "content": render_prompt(
                "followups.user",
                query=query,
                answer=answer[:ANSWER_PREVIEW_CHARS],
                sources_line=sources_line,
            ),
        },
    ]


async def generate_followups(
    generator: Any,
    *,
    query: str,
    answer: str,
    source_titles: list[str],
    is_followup: bool = False,
    request_id: str | None = None,
) -> list[str]:
    reply = await generator.generate_text(
        build_followup_messages(query, answer, source_titles, is_followup=is_followup),
        caller="followups",
        request_id=request_id,
    )
    return parse_followups(reply)
