"""
Chat orchestrator: the per-message pipeline

    first message          -> greeting
    known order reference  -> reconciliation report (no classification)
    otherwise              -> detect, classify, escalate or answer

Persistence, the Redis session mirror and operator notifications run as
background tasks so a slow or failing store never changes or delays the
reply. Writes for one user are queued so turns are stored in order. Session
updates themselves are not serialized: two concurrent requests from one user
can interleave their counter updates.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from config.settings import TYPING_DELAY_MAX, TYPING_DELAY_PER_CHAR
from services.deposit_problems import DepositProblemHandler
from services.escalation import EscalationPolicy
from services.intent_classifier import IntentClassifier
from services.order_reconciliation import OrderReconciler, ReconciliationResult
from services.response_generator import ResponseGenerator
from services.session_manager import SessionManager, UserSession
from utils.error_handler import InputValidationError
from utils.language_detection import LanguageDetector
from utils.order_reference import extract_order_number

logger = logging.getLogger(__name__)

MISSING_INPUT = "Message and userId are required"


@dataclass
class ChatResult:
    response: str
    language: str
    category: Optional[str] = None
    escalated: bool = False
    escalation_reason: Optional[str] = None
    reconciliation: Optional[ReconciliationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "category": self.category,
            "language": self.language,
            "escalated": self.escalated,
            "reconciliation": self.reconciliation.to_dict() if self.reconciliation else None,
        }


class ChatOrchestrator:
    def __init__(
        self,
        record_store,
        notifier,
        sessions: Optional[SessionManager] = None,
        detector: Optional[LanguageDetector] = None,
        classifier: Optional[IntentClassifier] = None,
        escalation: Optional[EscalationPolicy] = None,
        responses: Optional[ResponseGenerator] = None,
        typing_delay_per_char: float = TYPING_DELAY_PER_CHAR,
        typing_delay_max: float = TYPING_DELAY_MAX,
    ):
        self.record_store = record_store
        self.notifier = notifier
        self.sessions = sessions if sessions is not None else SessionManager()
        self.detector = detector if detector is not None else LanguageDetector()
        self.classifier = classifier if classifier is not None else IntentClassifier()
        self.escalation = escalation if escalation is not None else EscalationPolicy()
        self.responses = responses if responses is not None else ResponseGenerator(classifier=self.classifier)
        self.reconciler = OrderReconciler(record_store)
        self.deposit_problems = DepositProblemHandler(record_store, notifier, self.reconciler)
        self.typing_delay_per_char = typing_delay_per_char
        self.typing_delay_max = typing_delay_max
        self._tasks: Set[asyncio.Task] = set()
        self._last_write: Dict[str, asyncio.Task] = {}

    async def handle_message(self, user_id: str, text: str) -> str:
        result = await self.handle_message_detailed(user_id, text)
        return result.response

    async def handle_message_detailed(self, user_id: str, text: str) -> ChatResult:
        """
        Run one inbound message through the pipeline.

        Raises:
            InputValidationError: user_id or text missing; nothing is recorded
        """
        if not user_id or not text or not str(text).strip():
            raise InputValidationError(MISSING_INPUT, {"userId": bool(user_id), "message": bool(text)})

        session = await self.sessions.load(user_id)
        language = self.detector.detect(text)
        logger.info(f"💬 Message from {user_id} (language={language})")

        if session.is_first_message:
            session.is_first_message = False
            self._queue_write(user_id, self._register_user(user_id))
            result = ChatResult(response=self.responses.greeting(language), language=language)
            logger.info(f"👋 First message from {user_id}, greeting sent")
            return await self._finish(session, text, result)

        reconciliation = None
        order_number = extract_order_number(text)
        if order_number:
            reconciliation = await self.reconciler.reconcile(order_number)
            if reconciliation.found:
                result = ChatResult(
                    response=self.responses.reconciliation(reconciliation, language),
                    language=language,
                    reconciliation=reconciliation,
                )
                return await self._finish(session, text, result)

        category = self.classifier.classify(text, language)
        logger.info(f"🏷️ {user_id}: category={category}")

        reason = self.escalation.reason(text, category, session, language)
        if reason:
            session.attempt_count = 0
            result = ChatResult(
                response=self.responses.escalation(text, language),
                language=language,
                category=category,
                escalated=True,
                escalation_reason=reason,
                reconciliation=reconciliation,
            )
            logger.info(f"🚨 Escalated {user_id} ({reason})")
            return await self._finish(session, text, result)

        session.attempt_count += 1
        response = self.responses.generate(text, category, session, language, reconciliation)
        result = ChatResult(response=response, language=language, category=category, reconciliation=reconciliation)

        if category == "deposit" and self.classifier.sub_intent(text, category, language) == "fail":
            history = list(session.turns)
            self._spawn(self.deposit_problems.handle(user_id, text, order_number, history))

        return await self._finish(session, text, result)

    async def record_staff_reply(self, user_id: str, text: str) -> UserSession:
        """Append an operator-authored assistant turn to the live session and the store"""
        session = await self.sessions.load(user_id)
        session.add_turn("assistant", text)
        self._queue_write(user_id, self.sessions.persist(session))
        await self._queue_write(user_id, self._persist_turn(user_id, "assistant", text))
        logger.info(f"👤 Staff reply recorded for {user_id}")
        return session

    async def _finish(self, session: UserSession, text: str, result: ChatResult) -> ChatResult:
        session.add_turn("user", text)
        session.add_turn("assistant", result.response)
        self._queue_write(session.user_id, self.sessions.persist(session))

        self._queue_write(session.user_id, self._persist_exchange(session.user_id, text, result))
        await self._simulate_typing(result.response)
        return result

    async def _persist_exchange(self, user_id: str, text: str, result: ChatResult):
        await self._persist_turn(user_id, "user", text, result.category, result.language)
        await self._persist_turn(
            user_id, "assistant", result.response, result.category, result.language, result.escalated
        )

    async def _register_user(self, user_id: str):
        try:
            await asyncio.to_thread(self.record_store.get_or_create_user, user_id)
        except Exception as e:
            logger.error(f"❌ Failed to register user {user_id}: {e}")

    async def _persist_turn(self, user_id, role, text, category=None, language=None, escalated=False):
        try:
            await asyncio.to_thread(
                self.record_store.append_conversation_turn, user_id, role, text, category, language, escalated
            )
        except Exception as e:
            logger.error(f"❌ Failed to persist {role} turn for {user_id}: {e}")

    async def _simulate_typing(self, response: str):
        delay = min(len(response) * self.typing_delay_per_char, self.typing_delay_max)
        if delay > 0:
            await asyncio.sleep(delay)

    def _queue_write(self, user_id: str, coro) -> asyncio.Task:
        """Run a store write after the previous write for the same user"""
        previous = self._last_write.get(user_id)

        async def ordered():
            if previous is not None:
                await asyncio.gather(previous, return_exceptions=True)
            await coro

        task = self._spawn(ordered())
        self._last_write[user_id] = task
        task.add_done_callback(lambda done: self._forget_write(user_id, done))
        return task

    def _forget_write(self, user_id: str, task: asyncio.Task):
        if self._last_write.get(user_id) is task:
            del self._last_write[user_id]

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        """Wait for pending background persistence and notifications"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_chat_orchestrator: Optional[ChatOrchestrator] = None


def get_chat_orchestrator() -> ChatOrchestrator:
    """Get or create the process-wide orchestrator"""
    global _chat_orchestrator
    if _chat_orchestrator is None:
        from bot.telegram_notifier import get_telegram_notifier
        from database.record_store import get_record_store
        from database.redis_store import get_redis_store

        _chat_orchestrator = ChatOrchestrator(
            record_store=get_record_store(),
            notifier=get_telegram_notifier(),
            sessions=SessionManager(get_redis_store()),
        )
    return _chat_orchestrator


async def shutdown_chat_orchestrator():
    """Wait for queued writes and release the collaborators' connections"""
    global _chat_orchestrator
    if _chat_orchestrator is None:
        return
    await _chat_orchestrator.drain()
    await _chat_orchestrator.notifier.close()
    _chat_orchestrator.record_store.close()
    if _chat_orchestrator.sessions.redis_store:
        _chat_orchestrator.sessions.redis_store.close()
    _chat_orchestrator = None
