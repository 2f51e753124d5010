from __future__ import annotations

import re

WORD_COUNT_KEY = "wordcount"
WORD_COUNT_CSS = ".wc { opacity:.7; font-size:.9em; }"
WHITESPACE_RE = re.compile(r"\s+")


def count_words(text: str) -> int:
    # Splitting "" still gives one piece, so blank documents count as 1 word.
    return len(WHITESPACE_RE.split((text or "").strip()))


def attach_word_count(text: str, data: dict) -> int:
    count = count_words(text)
    data[WORD_COUNT_KEY] = count
    return count


def attach_word_count_meta(doc: dict, count: int):
    meta = doc.setdefault("meta", {})
    meta[WORD_COUNT_KEY] = {"t": "MetaString", "c": str(count)}


def render_word_count(data: dict) -> str:
    count = data.get(WORD_COUNT_KEY) or 0
    return f'<span class="wc">~{count} words</span>'
