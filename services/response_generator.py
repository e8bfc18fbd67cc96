"""
Response generation

Two paths: reconciliation reports built from a ledger record, and canned
templates selected by category and sub-intent. Angry messages get a
localized apology in front of whatever was selected.
"""

import logging
import re
from typing import Optional

from config.keywords import KeywordTables, get_keyword_tables
from config.settings import MAX_RESPONSE_SENTENCES
from config.templates import ResponseTemplates, get_templates
from services.intent_classifier import IntentClassifier
from services.order_reconciliation import ReconciliationResult
from utils.text_matching import find_substring

logger = logging.getLogger(__name__)

SENTENCE_END = re.compile(r"(?<=[.!?।])\s+")
LEDGER_LABELS = {"deposits": "deposit", "withdrawals": "withdrawal"}


def limit_sentences(text: str, max_sentences: int = MAX_RESPONSE_SENTENCES) -> str:
    sentences = SENTENCE_END.split(text.strip())
    if len(sentences) <= max_sentences:
        return text
    return " ".join(sentences[:max_sentences])


def _display(value) -> str:
    if value is None or value == "":
        return "-"
    return str(value)


class ResponseGenerator:
    def __init__(
        self,
        templates: Optional[ResponseTemplates] = None,
        tables: Optional[KeywordTables] = None,
        classifier: Optional[IntentClassifier] = None,
        max_sentences: int = MAX_RESPONSE_SENTENCES,
    ):
        self.templates = templates or get_templates()
        self.tables = tables or get_keyword_tables()
        self.classifier = classifier or IntentClassifier(self.tables)
        self.max_sentences = max_sentences

    def generate(
        self,
        message: str,
        category: str,
        session,
        language: str,
        reconciliation: Optional[ReconciliationResult] = None,
    ) -> str:
        """Reconciliation results take precedence over category templates"""
        if reconciliation is not None:
            if reconciliation.found:
                return self.reconciliation(reconciliation, language)
            return self.not_found(message, reconciliation.order_number, language)
        return self.template(message, category, language)

    def greeting(self, language: str) -> str:
        return self.templates.get(language, "greeting")

    def template(self, message: str, category: str, language: str) -> str:
        sub_intent = self.classifier.sub_intent(message, category, language)
        text = limit_sentences(self.templates.get(language, category, sub_intent), self.max_sentences)
        logger.debug(f"Template {category}/{sub_intent or 'general'} ({language})")
        return self.with_apology(message, language, text)

    def escalation(self, message: str, language: str) -> str:
        return self.with_apology(message, language, self.templates.get(language, "escalation"))

    def reconciliation(self, result: ReconciliationResult, language: str) -> str:
        """Status report for a matched ledger record; never trimmed or prefixed"""
        record = result.record
        return self.templates.get_reconciliation(language, result.status).format(
            order_number=result.order_number,
            ledger=LEDGER_LABELS.get(result.ledger, result.ledger),
            amount=_display(record.get("amount")),
            delivery_type=_display(record.get("delivery_type")),
            payment_status=_display(record.get("payment_status")),
            date=_display(record.get("import_date")),
        )

    def not_found(self, message: str, order_number: str, language: str) -> str:
        text = self.templates.get_reconciliation(language, "not_found").format(order_number=order_number)
        return self.with_apology(message, language, text)

    def is_angry(self, message: str, language: str) -> bool:
        return find_substring(message, self.tables.angry_keywords(language)) is not None

    def with_apology(self, message: str, language: str, text: str) -> str:
        if not self.is_angry(message, language):
            return text
        return f"{self.templates.get(language, 'apology')}\n\n{text}"
