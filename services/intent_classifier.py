"""
Keyword intent classifier for the support chat.
Deterministic keyword containment; category order decides overlaps.
"""

import logging
from typing import Literal, Optional

from config.keywords import KeywordTables, get_keyword_tables
from utils.text_matching import find_substring

logger = logging.getLogger(__name__)

IssueCategory = Literal[
	"deposit",
	"withdrawal",
	"account",
	"bonus",
	"technical",
	"complaint",
	"responsible_gaming",
	"general",
]

GENERAL = "general"


class IntentClassifier:
	def __init__(self, tables: Optional[KeywordTables] = None):
		self.tables = tables or get_keyword_tables()

	def classify(self, message: str, language: str) -> IssueCategory:
		"""First category (in fixed order) with a keyword contained in the message"""
		if not message:
			return GENERAL
		for category in self.tables.category_order:
			keywords = self.tables.category_keywords(language, category)
			if find_substring(message, keywords):
				return category
		return GENERAL

	def sub_intent(self, message: str, category: str, language: str) -> Optional[str]:
		"""Narrower refinement within a category, e.g. "fail" or "time" for deposits"""
		if not message:
			return None
		for name, keywords in self.tables.sub_intent_keywords(language, category).items():
			if find_substring(message, keywords):
				return name
		return None
