"""
Shared fixtures: a throwaway SQLite record store, a dict-backed Redis client
and a mocked Telegram notifier.
"""

import pytest
from unittest.mock import AsyncMock

from database.record_store import RecordStore
from database.redis_store import RedisStore
from services.chat_orchestrator import ChatOrchestrator
from services.session_manager import SessionManager

DEPOSIT_ORDER = "s052602010000079447000"
WITHDRAWAL_ORDER = "d051234567890123456789"
UNKNOWN_ORDER = "s059999999999999999999"


class FakeRedis:
    """The subset of redis.Redis the session mirror uses"""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def ping(self):
        return True

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    def info(self):
        return {"used_memory_human": "1M", "connected_clients": 1, "total_commands_processed": len(self.data)}

    def close(self):
        pass


@pytest.fixture
def record_store(tmp_path):
    store = RecordStore(f"sqlite:///{tmp_path / 'records.db'}")
    yield store
    store.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis):
    return RedisStore(client=fake_redis)


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.notify_problem.return_value = True
    mock.configured = True
    return mock


@pytest.fixture
def ledgers(record_store):
    """One deposit and one withdrawal on file"""
    record_store.bulk_import_transactions("deposits", [{
        "order_number": DEPOSIT_ORDER,
        "delivery_type": "instant",
        "amount": "500",
        "payment_status": "success",
        "import_date": "2026-01-05",
    }])
    record_store.bulk_import_transactions("withdrawals", [{
        "order_number": WITHDRAWAL_ORDER,
        "delivery_type": "bank",
        "amount": 1200,
        "payment_status": "processing",
        "import_date": "2026-01-06",
    }])
    return record_store


@pytest.fixture
def orchestrator(record_store, notifier, redis_store):
    return ChatOrchestrator(
        record_store=record_store,
        notifier=notifier,
        sessions=SessionManager(redis_store),
        typing_delay_per_char=0,
    )
