from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Literal, Sequence

KeywordStatus = Literal["matched", "missing"]

MARKER_TEMPLATE = '<mark class="keyword-{status}">{content}</mark>'


@dataclass(frozen=True)
class KeywordSpan:
    start: int
    end: int
    status: KeywordStatus


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # Lookarounds instead of \b so that "C++" or ".NET" still delimit correctly.
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", re.IGNORECASE)


def _ordered_keywords(matched: Sequence[str], missing: Sequence[str]) -> list[str]:
    keywords = [kw for kw in [*matched, *missing] if isinstance(kw, str) and kw.strip()]
    # sorted() is stable, so equal lengths keep their original relative order.
    return sorted(keywords, key=len, reverse=True)


def find_keyword_spans(
    text: str,
    matched_keywords: Sequence[str],
    missing_keywords: Sequence[str],
) -> list[KeywordSpan]:
    """Locate keyword occurrences, longest keyword first, never overlapping.

    Once a span is claimed by a longer keyword, shorter keywords cannot mark
    any character inside it, so "Java" never splits "JavaScript".
    """
    matched_set = set(matched_keywords)
    # One flag per character of text; a span is free when none of its flags is set.
    claimed_chars = bytearray(len(text))
    claimed: list[KeywordSpan] = []
    for keyword in _ordered_keywords(matched_keywords, missing_keywords):
        status: KeywordStatus = "matched" if keyword in matched_set else "missing"
        for match in _keyword_pattern(keyword.strip()).finditer(text):
            start, end = match.span()
            if start == end or any(claimed_chars[start:end]):
                continue
            claimed_chars[start:end] = b"\x01" * (end - start)
            claimed.append(KeywordSpan(start=start, end=end, status=status))
    return sorted(claimed, key=lambda span: span.start)


def highlight_keywords(
    text: str,
    matched_keywords: Sequence[str],
    missing_keywords: Sequence[str],
) -> str:
    """Return HTML-escaped text with every keyword occurrence wrapped in a marker."""
    if not text:
        return ""
    parts: list[str] = []
    cursor = 0
    for span in find_keyword_spans(text, matched_keywords, missing_keywords):
        parts.append(html.escape(text[cursor : span.start], quote=False))
        parts.append(
            MARKER_TEMPLATE.format(
                status=span.status,
                content=html.escape(text[span.start : span.end], quote=False),
            )
        )
        cursor = span.end
    parts.append(html.escape(text[cursor:], quote=False))
    return "".join(parts)
