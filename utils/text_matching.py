"""Keyword containment helpers shared by the detector, classifier and escalation policy"""

import re
from functools import lru_cache
from typing import Iterable, Optional


@lru_cache(maxsize=4096)
def _word_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(keyword) + r"\b", re.I)


def find_substring(text: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first keyword contained anywhere in text (case-insensitive)"""
    lowered = text.lower()
    for keyword in keywords:
        if keyword.lower() in lowered:
            return keyword
    return None


def find_word(text: str, keywords: Iterable[str]) -> Optional[str]:
    """
    Return the first keyword found as a whole word.

    ASCII keywords need word boundaries so "ban" does not fire inside "bank".
    Indic-script keywords fall back to containment, because combining vowel
    signs are not word characters and would break the boundary test.
    """
    lowered = text.lower()
    for keyword in keywords:
        if keyword.isascii():
            if _word_pattern(keyword).search(text):
                return keyword
        elif keyword.lower() in lowered:
            return keyword
    return None


def count_distinct_words(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords present as whole words"""
    return len({keyword.lower() for keyword in keywords if _word_pattern(keyword).search(text)})
