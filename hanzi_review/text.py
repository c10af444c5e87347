"""
Helpers for pulling Chinese characters out of free text.
"""

from __future__ import annotations

import re


# Han script blocks: radicals, CJK symbols used as ideographs, unified
# ideographs (with extensions A-H) and compatibility ideographs.
HANZI_CHAR_PATTERN = re.compile(
    "["
    "\u2e80-\u2e99\u2e9b-\u2ef3\u2f00-\u2fd5"
    "\u3005\u3007\u3021-\u3029\u3038-\u303b"
    "\u3400-\u4dbf"
    "\u4e00-\u9fff"
    "\uf900-\ufa6d\ufa70-\ufad9"
    "\U00020000-\U0002a6df"
    "\U0002a700-\U0002ebef"
    "\U0002f800-\U0002fa1f"
    "\U00030000-\U000323af"
    "]"
)


def is_hanzi_character(char: str) -> bool:
    return bool(HANZI_CHAR_PATTERN.fullmatch(char))


def extract_unique_hanzi(text: str) -> list[str]:
    """
    Unique Han characters in order of first appearance.

    Everything else (latin letters, digits, punctuation, whitespace) is dropped.
    """
    seen: set[str] = set()
    unique: list[str] = []
    for char in HANZI_CHAR_PATTERN.findall(text.strip()):
        if char in seen:
            continue
        seen.add(char)
        unique.append(char)
    return unique
