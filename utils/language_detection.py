"""
Language detection for inbound chat messages
Detects the reply language from Unicode script ranges and romanized keywords
"""

import logging
import re
from typing import Optional

from config.keywords import KeywordTables, get_keyword_tables
from utils.text_matching import count_distinct_words

logger = logging.getLogger(__name__)

# Romanized detection needs this many distinct hits to avoid single-word false positives
MIN_ROMANIZED_HITS = 2

LATIN_ONLY = re.compile(r"^[\x00-\x7F\u00A0-\u024F]+$")
TOKEN = re.compile(r"[a-z']+")


class LanguageDetector:
    """Stateless detector; every message is classified on its own"""

    def __init__(self, tables: Optional[KeywordTables] = None):
        self.tables = tables or get_keyword_tables()

    def detect(self, text: Optional[str]) -> str:
        default = self.tables.default_language
        if not text or not text.strip():
            return default

        script_language = self._detect_script(text)
        if script_language:
            return script_language

        romanized = self._detect_romanized(text)
        if romanized:
            return romanized

        if LATIN_ONLY.match(text) and self._looks_like_default(text):
            return default

        return default

    def _detect_script(self, text: str) -> Optional[str]:
        for language, low, high in self.tables.script_ranges:
            if any(low <= char <= high for char in text):
                return language
        return None

    def _detect_romanized(self, text: str) -> Optional[str]:
        best_language, best_hits = None, 0
        for language, words in self.tables.romanized_words.items():
            hits = count_distinct_words(text, words)
            if hits >= MIN_ROMANIZED_HITS and hits > best_hits:
                best_language, best_hits = language, hits
        if best_language:
            logger.debug(f"Romanized {best_language} detected ({best_hits} keyword hits)")
        return best_language

    def _looks_like_default(self, text: str) -> bool:
        tokens = TOKEN.findall(text.lower())
        if any(token in self.tables.common_words for token in tokens):
            return True
        return len(text.split()) > 2
