"""Pipeline tests for ChatOrchestrator."""
import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis

from config.templates import get_templates
from database.redis_store import RedisStore
from services.chat_orchestrator import ChatOrchestrator
from services.session_manager import SessionManager
from utils.error_handler import InputValidationError

from conftest import DEPOSIT_ORDER, UNKNOWN_ORDER, WITHDRAWAL_ORDER

GREETING = get_templates().get("english", "greeting")
ESCALATION = get_templates().get("english", "escalation")


def run_conversation(orchestrator, user_id, *messages):
    """Send messages in order and wait for background work"""
    async def scenario():
        results = [await orchestrator.handle_message_detailed(user_id, text) for text in messages]
        await orchestrator.drain()
        return results
    return asyncio.run(scenario())


class TestGreeting:

    def test_first_message_always_greets(self, orchestrator):
        [result] = run_conversation(orchestrator, "u1", "this is a scam, get me a lawyer")
        assert result.response == GREETING
        assert result.escalated is False
        assert result.category is None
        assert orchestrator.sessions.get("u1").attempt_count == 0

    def test_first_message_with_known_order_still_greets(self, orchestrator, ledgers):
        [result] = run_conversation(orchestrator, "u1", f"order {DEPOSIT_ORDER}")
        assert result.response == GREETING
        assert result.reconciliation is None

    def test_greeting_is_localized(self, orchestrator):
        [result] = run_conversation(orchestrator, "u1", "नमस्ते")
        assert result.language == "hindi"
        assert result.response == get_templates().get("hindi", "greeting")

    def test_returns_plain_text(self, orchestrator):
        async def scenario():
            return await orchestrator.handle_message("u1", "hello")
        assert asyncio.run(scenario()) == GREETING


class TestAttemptCounter:

    def test_fourth_unresolved_turn_escalates(self, orchestrator):
        results = run_conversation(
            orchestrator, "u1",
            "hello",
            "what games do you have",
            "what games do you have",
            "what games do you have",
            "what games do you have",
        )
        session = orchestrator.sessions.get("u1")

        assert [result.escalated for result in results] == [False, False, False, False, True]
        assert results[-1].escalation_reason == "attempt_limit"
        assert results[-1].response == ESCALATION
        assert session.attempt_count == 0

    def test_keyword_escalation_resets_counter(self, orchestrator):
        results = run_conversation(orchestrator, "u1", "hello", "deposit?", "I want a human agent")
        assert results[1].escalated is False
        assert results[2].escalated is True
        assert results[2].escalation_reason == "human_request"
        assert orchestrator.sessions.get("u1").attempt_count == 0

    def test_users_have_separate_counters(self, orchestrator):
        run_conversation(orchestrator, "u1", "hello", "bonus", "bonus")
        run_conversation(orchestrator, "u2", "hello", "bonus")
        assert orchestrator.sessions.get("u1").attempt_count == 2
        assert orchestrator.sessions.get("u2").attempt_count == 1


class TestReconciliation:

    def test_known_deposit_short_circuits(self, orchestrator, ledgers, notifier):
        results = run_conversation(orchestrator, "u1", "hello", f"my deposit failed, order {DEPOSIT_ORDER}")
        result = results[1]

        assert "Successful" in result.response
        assert result.category is None
        assert result.escalated is False
        assert result.reconciliation.ledger == "deposits"
        assert result.to_dict()["reconciliation"]["status"] == "success"
        assert orchestrator.sessions.get("u1").attempt_count == 0
        notifier.notify_problem.assert_not_awaited()

    def test_known_withdrawal_reports_pending(self, orchestrator, ledgers):
        results = run_conversation(orchestrator, "u1", "hello", WITHDRAWAL_ORDER.upper())
        assert results[1].reconciliation.ledger == "withdrawals"
        assert "Pending" in results[1].response

    def test_unknown_order_with_deposit_failure_records_problem(self, orchestrator, record_store, notifier):
        results = run_conversation(orchestrator, "u1", "hello", f"deposit failed order {UNKNOWN_ORDER}")
        result = results[1]

        assert "couldn't find order" in result.response
        assert result.category == "deposit"
        assert result.reconciliation.found is False
        assert orchestrator.sessions.get("u1").attempt_count == 1

        problem = record_store.get_deposit_problem("u1")
        assert problem["order_number"] == UNKNOWN_ORDER
        assert problem["notified"] is True
        notifier.notify_problem.assert_awaited_once()

    def test_unknown_order_without_failure_records_nothing(self, orchestrator, record_store, notifier):
        results = run_conversation(orchestrator, "u1", "hello", f"status of {UNKNOWN_ORDER}?")
        assert "couldn't find order" in results[1].response
        assert record_store.get_deposit_problem("u1") is None
        notifier.notify_problem.assert_not_awaited()

    def test_unknown_order_can_still_escalate(self, orchestrator):
        results = run_conversation(orchestrator, "u1", "hello", f"{UNKNOWN_ORDER} this is a scam")
        assert results[1].escalated is True
        assert results[1].reconciliation.order_number == UNKNOWN_ORDER

    def test_deposit_failure_uses_order_from_history(self, orchestrator, record_store):
        run_conversation(orchestrator, "u1", "hello", f"order {UNKNOWN_ORDER}", "my deposit failed")
        assert record_store.get_deposit_problem("u1")["order_number"] == UNKNOWN_ORDER

    def test_deposit_failure_about_known_history_order(self, orchestrator, ledgers, notifier):
        run_conversation(orchestrator, "u1", "hello", f"order {DEPOSIT_ORDER}", "but my deposit failed")
        assert ledgers.get_deposit_problem("u1") is None
        notifier.notify_problem.assert_not_awaited()


class TestPersistence:

    def test_turns_are_persisted(self, orchestrator, record_store):
        run_conversation(orchestrator, "u1", "hello", "deposit?")
        history = record_store.get_conversation_history("u1")
        assert [turn["role"] for turn in history] == ["user", "assistant", "user", "assistant"]
        assert history[2]["category"] == "deposit"
        assert history[3]["language"] == "english"

    def test_session_is_mirrored(self, orchestrator, fake_redis):
        run_conversation(orchestrator, "u1", "hello")
        assert "session:u1" in fake_redis.data

    def test_injected_session_manager_is_kept(self, record_store, notifier, redis_store):
        sessions = SessionManager(redis_store)
        orchestrator = ChatOrchestrator(record_store, notifier, sessions=sessions)
        assert orchestrator.sessions is sessions

    def test_restarted_process_restores_session_from_redis(self, orchestrator, record_store, notifier, redis_store):
        run_conversation(orchestrator, "u1", "hello", "deposit?")

        restarted = ChatOrchestrator(
            record_store, notifier, sessions=SessionManager(redis_store), typing_delay_per_char=0
        )
        [result] = run_conversation(restarted, "u1", "how to withdraw")
        assert result.response != GREETING
        assert result.category == "withdrawal"
        assert restarted.sessions.get("u1").attempt_count == 2

    def test_first_message_registers_user(self, orchestrator, record_store):
        run_conversation(orchestrator, "u1", "hello")
        assert record_store.get_stats()["users"] == 1

    def test_storage_failure_does_not_change_reply(self, notifier):
        store = MagicMock()
        store.append_conversation_turn.side_effect = RuntimeError("disk full")
        store.find_transaction_by_order_number.side_effect = RuntimeError("disk full")
        orchestrator = ChatOrchestrator(store, notifier, typing_delay_per_char=0)

        results = run_conversation(orchestrator, "u1", "hello", f"order {UNKNOWN_ORDER}")
        assert results[0].response == GREETING
        assert "couldn't find order" in results[1].response


class TestValidation:

    @pytest.mark.parametrize("user_id,text", [("", "hi"), ("u1", ""), ("u1", "   "), (None, "hi"), ("u1", None)])
    def test_missing_input_is_rejected(self, orchestrator, record_store, user_id, text):
        async def scenario():
            await orchestrator.handle_message(user_id, text)

        with pytest.raises(InputValidationError):
            asyncio.run(scenario())
        assert len(orchestrator.sessions) == 0
        assert record_store.get_stats()["messages"] == 0


class TestStaffReplyAndTyping:

    def test_staff_reply_makes_session_closing_eligible(self, orchestrator, record_store):
        run_conversation(orchestrator, "u1", "hello")

        async def scenario():
            return await orchestrator.record_staff_reply("u1", "Is there anything else?")

        session = asyncio.run(scenario())
        assert session.is_closing_eligible()
        assert record_store.get_conversation_history("u1")[-1]["text"] == "Is there anything else?"

    def test_typing_delay_is_capped(self, record_store, notifier):
        orchestrator = ChatOrchestrator(
            record_store, notifier, sessions=SessionManager(),
            typing_delay_per_char=1.0, typing_delay_max=0.25,
        )
        with patch("services.chat_orchestrator.asyncio.sleep", new=AsyncMock()) as sleep:
            run_conversation(orchestrator, "u1", "hello")
        sleep.assert_awaited_once_with(0.25)


class DownRedis:
    """A Redis client whose writes hang for a while and then fail"""

    def __init__(self, write_delay=0.3):
        self.write_delay = write_delay

    def ping(self):
        return True

    def get(self, key):
        raise redis.exceptions.ConnectionError("connection refused")

    def setex(self, key, ttl, value):
        time.sleep(self.write_delay)
        raise redis.exceptions.TimeoutError("timed out")


class TestConcurrency:

    def test_typing_delay_does_not_hold_up_other_users(self, record_store, notifier):
        orchestrator = ChatOrchestrator(
            record_store, notifier, sessions=SessionManager(),
            typing_delay_per_char=1.0, typing_delay_max=0.3,
        )

        async def scenario():
            started = time.perf_counter()
            results = await asyncio.gather(*(
                orchestrator.handle_message_detailed(user_id, "hello") for user_id in ("u1", "u2", "u3")
            ))
            elapsed = time.perf_counter() - started
            await orchestrator.drain()
            return results, elapsed

        results, elapsed = asyncio.run(scenario())
        assert [result.response for result in results] == [GREETING] * 3
        assert 0.25 <= elapsed < 0.75

    def test_redis_outage_does_not_stall_replies(self, record_store, notifier):
        orchestrator = ChatOrchestrator(
            record_store, notifier, sessions=SessionManager(RedisStore(client=DownRedis())),
            typing_delay_per_char=1.0, typing_delay_max=0.1,
        )

        async def scenario():
            started = time.perf_counter()
            results = await asyncio.gather(
                orchestrator.handle_message_detailed("u1", "hello"),
                orchestrator.handle_message_detailed("u2", "hello"),
            )
            elapsed = time.perf_counter() - started
            await orchestrator.drain()
            return results, elapsed

        results, elapsed = asyncio.run(scenario())
        assert [result.response for result in results] == [GREETING, GREETING]
        assert elapsed < 0.3
        assert record_store.get_conversation_history("u1")[0]["text"] == "hello"
