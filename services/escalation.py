"""Escalation policy: when a conversation must be handed to a human"""

import logging
from typing import Optional

from config.keywords import KeywordTables, get_keyword_tables
from config.settings import ESCALATION_ATTEMPT_LIMIT
from utils.text_matching import find_word

logger = logging.getLogger(__name__)

KEYWORD_REASONS = ("human_request", "legal_threat", "payment_dispute", "account_suspension")
ATTEMPT_LIMIT_REASON = "attempt_limit"
SYSTEM_FAILURE_REASON = "system_failure"


class EscalationPolicy:
    def __init__(self, tables: Optional[KeywordTables] = None, attempt_limit: int = ESCALATION_ATTEMPT_LIMIT):
        self.tables = tables or get_keyword_tables()
        self.attempt_limit = attempt_limit

    def reason(self, message: str, category: str, session, language: str) -> Optional[str]:
        """Name of the first escalation trigger that holds, or None"""
        for reason in KEYWORD_REASONS:
            keyword = find_word(message, self.tables.escalation_keywords(language, reason))
            if keyword:
                logger.info(f"🚨 Escalation trigger '{reason}' (keyword '{keyword}') for {session.user_id}")
                return reason

        if session.attempt_count >= self.attempt_limit:
            logger.info(f"🚨 Escalation trigger '{ATTEMPT_LIMIT_REASON}' ({session.attempt_count} unresolved turns) for {session.user_id}")
            return ATTEMPT_LIMIT_REASON

        if category == "technical":
            keyword = find_word(message, self.tables.escalation_keywords(language, SYSTEM_FAILURE_REASON))
            if keyword:
                logger.info(f"🚨 Escalation trigger '{SYSTEM_FAILURE_REASON}' (keyword '{keyword}') for {session.user_id}")
                return SYSTEM_FAILURE_REASON

        return None

    def should_escalate(self, message: str, category: str, session, language: str) -> bool:
        return self.reason(message, category, session, language) is not None

