"""
Per-user conversation sessions

Sessions live in a bounded in-process LRU map. Every change is mirrored to
Redis so a session evicted from memory (or lost on restart) is restored on
the user's next message instead of starting over with a greeting.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config.settings import MAX_SESSIONS
from database.redis_store import RedisStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationTurn:
    role: str  # user / assistant
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "text": self.text, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        timestamp = data.get("timestamp")
        return cls(
            role=data["role"],
            text=data["text"],
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(timezone.utc),
        )


@dataclass
class UserSession:
    user_id: str
    turns: List[ConversationTurn] = field(default_factory=list)
    attempt_count: int = 0
    is_first_message: bool = True

    def add_turn(self, role: str, text: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, text=text)
        self.turns.append(turn)
        return turn

    def is_closing_eligible(self) -> bool:
        """The user went quiet after a follow-up: the last two turns are both assistant turns"""
        if len(self.turns) < 2:
            return False
        return all(turn.role == "assistant" for turn in self.turns[-2:])

    def state(self) -> Dict[str, Any]:
        return {"attempt_count": self.attempt_count, "is_first_message": self.is_first_message}


class SessionManager:
    """Bounded LRU of live sessions, mirrored to Redis"""

    def __init__(self, redis_store: Optional[RedisStore] = None, max_sessions: int = MAX_SESSIONS):
        self.redis_store = redis_store
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, UserSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    @property
    def mirrored(self) -> bool:
        return self.redis_store is not None and self.redis_store.available

    def get(self, user_id: str) -> UserSession:
        """Return the live session for user_id, restoring or creating it as needed"""
        session = self._lookup(user_id)
        if session is not None:
            return session
        return self._admit(user_id, self._restore(user_id))

    async def load(self, user_id: str) -> UserSession:
        """Like get(), but the Redis restore runs in a worker thread"""
        session = self._lookup(user_id)
        if session is not None:
            return session

        restored = await asyncio.to_thread(self._restore, user_id) if self.mirrored else None
        # A concurrent request for the same user may have admitted it meanwhile
        return self._lookup(user_id) or self._admit(user_id, restored)

    def peek(self, user_id: str) -> Optional[UserSession]:
        """Live session without touching LRU order or creating one"""
        return self._sessions.get(user_id)

    def save(self, session: UserSession):
        """Mirror counters and recent turns; failures only cost durability"""
        self._write_mirror(session.user_id, session.state(), [turn.to_dict() for turn in session.turns])

    def persist(self, session: UserSession):
        """
        Snapshot the session now and return an awaitable that mirrors it
        to Redis from a worker thread.
        """
        state = session.state()
        turns = [turn.to_dict() for turn in session.turns]
        return asyncio.to_thread(self._write_mirror, session.user_id, state, turns)

    def _write_mirror(self, user_id: str, state: Dict[str, Any], turns: List[Dict[str, Any]]):
        if not self.mirrored:
            return
        if not self.redis_store.set_session_state(user_id, state):
            return
        self.redis_store.set_conversation(user_id, turns)

    def _lookup(self, user_id: str) -> Optional[UserSession]:
        session = self._sessions.get(user_id)
        if session is not None:
            self._sessions.move_to_end(user_id)
        return session

    def _admit(self, user_id: str, restored: Optional[UserSession]) -> UserSession:
        session = restored or UserSession(user_id=user_id)
        self._sessions[user_id] = session
        self._evict()
        return session

    def _restore(self, user_id: str) -> Optional[UserSession]:
        if not self.mirrored:
            return None
        state = self.redis_store.get_session_state(user_id)
        if not state:
            return None
        turns = [ConversationTurn.from_dict(item) for item in self.redis_store.get_conversation(user_id) or []]
        logger.info(f"♻️ Restored session {user_id} from Redis ({len(turns)} turns)")
        return UserSession(
            user_id=user_id,
            turns=turns,
            attempt_count=int(state.get("attempt_count", 0)),
            is_first_message=bool(state.get("is_first_message", False)),
        )

    def _evict(self):
        while len(self._sessions) > self.max_sessions:
            user_id, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted session {user_id} from memory")
