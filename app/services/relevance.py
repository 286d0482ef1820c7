"""Query-relevant excerpt selection under a character budget.

`select_relevant_content` is a pure function: the same document, query and
budget always produce the same excerpt, and the excerpt never exceeds the
budget.
"""
from __future__ import annotations

import re

from rank_bm25 import BM25Okapi

SEGMENT_SEPARATOR = "\n\n"
MAX_SEGMENT_CHARS = 800
MIN_TERM_LENGTH = 3

STOP_WORDS = frozenset(
    {
        "about", "after", "again", "all", "also", "and", "any", "are", "because",
        "been", "before", "being", "between", "both", "but", "can", "could", "did",
        "does", "doing", "during", "each", "few", "for", "from", "further", "had",
        "has", "have", "having", "her", "here", "hers", "him", "his", "how", "into",
        "its", "itself", "just", "more", "most", "not", "now", "off", "once", "only",
        "other", "our", "ours", "out", "over", "own", "same", "she", "should", "some",
        "such", "than", "that", "the", "their", "theirs", "them", "then", "there",
        "these", "they", "this", "those", "through", "too", "under", "until", "very",
        "was", "were", "what", "when", "where", "which", "while", "who", "whom", "why",
        "will", "with", "would", "you", "your", "yours", "tell", "explain", "please",
    }
)

_TOKEN_RE = re.compile(r"\w+")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def query_terms(query: str) -> list[str]:
    """Significant query terms, lower-cased, de-duplicated, in query order."""
    terms: list[str] = []
    for token in _tokenize(query):
        if len(token) < MIN_TERM_LENGTH or token in STOP_WORDS:
            continue
        if token not in terms:
            terms.append(token)
    return terms


def _cut_at_boundary(text: str, limit: int) -> str:
    """Cut `text` to at most `limit` chars, preferring the last whitespace."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    if not text[limit].isspace():
        boundary = max(cut.rfind(" "), cut.rfind("\n"), cut.rfind("\t"))
        if boundary > 0:
            cut = cut[:boundary]
    return cut.rstrip()


def _windows(text: str, max_chars: int) -> list[str]:
    windows: list[str] = []
    current = ""
    for word in text.split():
        while len(word) > max_chars:
            if current:
                windows.append(current)
                current = ""
            windows.append(word[:max_chars])
            word = word[max_chars:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars:
            windows.append(current)
            current = word
        else:
            current = candidate
    if current:
        windows.append(current)
    return windows


def split_segments(document: str, max_chars: int = MAX_SEGMENT_CHARS) -> list[str]:
    """Paragraphs; over-long paragraphs become sentences, then word windows."""
    max_chars = max(1, max_chars)
    segments: list[str] = []
    for paragraph in _PARAGRAPH_RE.split(document):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if len(paragraph) <= max_chars:
            segments.append(paragraph)
            continue
        for sentence in _SENTENCE_RE.split(paragraph):
            sentence = sentence.strip()
            if not sentence:
                continue
            if len(sentence) <= max_chars:
                segments.append(sentence)
            else:
                segments.extend(_windows(sentence, max_chars))
    return segments


def score_segments(segments: list[str], terms: list[str]) -> list[float]:
    """Distinct-term overlap plus BM25 weight; zero means no query term at all."""
    if not segments or not terms:
        return [0.0] * len(segments)

    tokenized = [_tokenize(segment) for segment in segments]
    term_set = set(terms)
    overlaps = [len(term_set.intersection(tokens)) for tokens in tokenized]
    if not any(overlaps):
        return [0.0] * len(segments)

    bm25_scores = BM25Okapi(tokenized).get_scores(terms)
    return [
        float(overlap) + max(float(weight), 0.0) if overlap else 0.0
        for overlap, weight in zip(overlaps, bm25_scores)
    ]


def select_relevant_content(document: str, query: str, budget: int) -> str:
    """Return the most query-relevant excerpts of `document` within `budget` chars."""
    if not document or budget <= 0:
        return ""
    if len(document) <= budget:
        return document

    segments = split_segments(document, min(budget, MAX_SEGMENT_CHARS))
    scores = score_segments(segments, query_terms(query))
    if not any(scores):
        return _cut_at_boundary(document, budget)

    ranked = sorted(
        (index for index, score in enumerate(scores) if score > 0),
        key=lambda index: (-scores[index], index),
    )

    chosen: dict[int, str] = {}
    remaining = budget
    for index in ranked:
        separator = len(SEGMENT_SEPARATOR) if chosen else 0
        segment = segments[index]
        if len(segment) + separator <= remaining:
            chosen[index] = segment
            remaining -= len(segment) + separator
            continue
        partial = _cut_at_boundary(segment, remaining - separator)
        if partial:
            chosen[index] = partial
        break

    return SEGMENT_SEPARATOR.join(chosen[index] for index in sorted(chosen))
