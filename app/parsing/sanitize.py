from __future__ import annotations

import re

MIN_TEXT_LENGTH = 50

_WHITESPACE_RE = re.compile(r"\s+")


def _is_safe_code_point(code_point: int) -> bool:
    return 32 <= code_point <= 126 or 160 <= code_point <= 255


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_text(text: str) -> str:
    # Control characters, lone surrogates and anything above Latin-1 become a space.
    mapped = "".join(ch if _is_safe_code_point(ord(ch)) else " " for ch in text or "")
    return collapse_whitespace(mapped)


def has_minimum_length(text: str, minimum: int = MIN_TEXT_LENGTH) -> bool:
    return len(text) >= minimum
