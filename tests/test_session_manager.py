"""Unit tests for UserSession and SessionManager."""
import json

import redis

from database.redis_store import RedisStore
from services.session_manager import ConversationTurn, SessionManager, UserSession


class TestUserSession:

    def test_new_session_defaults(self):
        session = UserSession(user_id="u1")
        assert session.turns == []
        assert session.attempt_count == 0
        assert session.is_first_message is True

    def test_turns_are_append_only_in_order(self):
        session = UserSession(user_id="u1")
        session.add_turn("user", "hi")
        session.add_turn("assistant", "hello")
        session.add_turn("user", "deposit?")
        assert [turn.text for turn in session.turns] == ["hi", "hello", "deposit?"]

    def test_closing_eligible_after_two_assistant_turns(self):
        session = UserSession(user_id="u1")
        session.add_turn("user", "hi")
        session.add_turn("assistant", "hello")
        assert not session.is_closing_eligible()
        session.add_turn("assistant", "anything else?")
        assert session.is_closing_eligible()
        session.add_turn("user", "no")
        assert not session.is_closing_eligible()

    def test_turn_round_trips_through_dict(self):
        turn = ConversationTurn("user", "hi")
        assert ConversationTurn.from_dict(turn.to_dict()) == turn


class TestSessionManager:

    def test_get_creates_once(self):
        manager = SessionManager()
        session = manager.get("u1")
        assert manager.get("u1") is session
        assert len(manager) == 1

    def test_lru_eviction(self):
        manager = SessionManager(max_sessions=2)
        manager.get("a")
        manager.get("b")
        manager.get("a")
        manager.get("c")
        assert "b" not in manager
        assert "a" in manager and "c" in manager

    def test_evicted_session_without_mirror_starts_over(self):
        manager = SessionManager(max_sessions=1)
        manager.get("a").is_first_message = False
        manager.get("b")
        assert manager.get("a").is_first_message is True

    def test_save_mirrors_to_redis(self, redis_store, fake_redis):
        manager = SessionManager(redis_store)
        session = manager.get("u1")
        session.is_first_message = False
        session.attempt_count = 2
        session.add_turn("user", "hi")
        manager.save(session)

        assert json.loads(fake_redis.data["session:u1"]) == {"attempt_count": 2, "is_first_message": False}
        assert json.loads(fake_redis.data["conversation:u1"])[0]["text"] == "hi"
        assert fake_redis.ttls["session:u1"] == 86400

    def test_evicted_session_is_restored_from_redis(self, redis_store):
        manager = SessionManager(redis_store, max_sessions=1)
        session = manager.get("a")
        session.is_first_message = False
        session.attempt_count = 2
        session.add_turn("user", "hi")
        session.add_turn("assistant", "hello")
        manager.save(session)

        manager.get("b")
        assert "a" not in manager

        restored = manager.get("a")
        assert restored is not session
        assert restored.is_first_message is False
        assert restored.attempt_count == 2
        assert [turn.text for turn in restored.turns] == ["hi", "hello"]

    def test_unavailable_redis_is_ignored(self):
        manager = SessionManager(RedisStore(client=None, url="redis://127.0.0.1:1/0"))
        session = manager.get("u1")
        manager.save(session)
        assert manager.get("u1") is session

    def test_peek_does_not_create(self):
        manager = SessionManager()
        assert manager.peek("nobody") is None
        assert len(manager) == 0


class FailingRedis:
    def __init__(self):
        self.writes = 0

    def get(self, key):
        raise redis.exceptions.ConnectionError("connection refused")

    def setex(self, key, ttl, value):
        self.writes += 1
        raise redis.exceptions.ConnectionError("connection refused")


def test_mirror_failures_are_not_retried():
    client = FailingRedis()
    manager = SessionManager(RedisStore(client=client))

    session = manager.get("u1")
    manager.save(session)

    assert session.is_first_message is True
    assert client.writes == 1
