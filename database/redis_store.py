"""Redis mirror for chat session state"""

import redis
import json
import logging
from typing import Optional, List, Dict, Any
from config.settings import REDIS_URL, SESSION_TTL

logger = logging.getLogger(__name__)

# Recent turns kept in the mirror; the Record Store holds the full history
MIRROR_TURNS = 20


class RedisStore:
    """Redis store mirroring the in-process session working set"""

    def __init__(self, url: str = REDIS_URL, client=None):
        """Initialize Redis connection with connection pooling"""
        if client is not None:
            self.client = client
            return

        try:
            pool = redis.ConnectionPool.from_url(
                url,
                decode_responses=True,
                max_connections=50,
                socket_connect_timeout=5,
                socket_timeout=5,
                socket_keepalive=True,
                retry_on_timeout=True,
                health_check_interval=30
            )

            self.client = redis.Redis(connection_pool=pool)
            self.client.ping()
            logger.info("✓ Redis connection pool established (max_connections=50)")
        except Exception as e:
            logger.warning(f"⚠️ Redis unavailable, sessions stay in-process only: {e}")
            self.client = None

    @property
    def available(self) -> bool:
        return self.client is not None

    def set_session_state(self, user_id: str, state: Dict[str, Any], ttl: int = SESSION_TTL) -> bool:
        """
        Store the counters of a session

        Args:
            user_id: User identifier
            state: {"attempt_count": int, "is_first_message": bool}
            ttl: Time to live in seconds
        """
        if not self.client:
            return False

        try:
            self.client.setex(f"session:{user_id}", ttl, json.dumps(state))
            logger.debug(f"Mirrored session state for {user_id}")
            return True
        except redis.exceptions.RedisError as e:
            logger.error(f"Error storing session state: {e}")
            return False

    def get_session_state(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve mirrored session counters, or None if the user has no mirror"""
        if not self.client:
            return None

        try:
            data = self.client.get(f"session:{user_id}")
            if data:
                return json.loads(data)
            return None
        except (redis.exceptions.RedisError, ValueError) as e:
            logger.error(f"Error retrieving session state: {e}")
            return None

    def set_conversation(self, user_id: str, conversation: List[Dict[str, Any]], ttl: int = SESSION_TTL) -> bool:
        """
        Store recent conversation turns for a user

        Args:
            user_id: User identifier
            conversation: List of {"role", "text", "timestamp"} dicts
            ttl: Time to live in seconds (default 24 hours)
        """
        if not self.client:
            return False

        try:
            self.client.setex(
                f"conversation:{user_id}",
                ttl,
                json.dumps(conversation[-MIRROR_TURNS:])
            )
            return True
        except redis.exceptions.RedisError as e:
            logger.error(f"Error storing conversation: {e}")
            return False

    def get_conversation(self, user_id: str) -> Optional[List[Dict[str, Any]]]:
        """Retrieve mirrored conversation turns, oldest first"""
        if not self.client:
            return None

        try:
            data = self.client.get(f"conversation:{user_id}")
            if data:
                return json.loads(data)
            return None
        except (redis.exceptions.RedisError, ValueError) as e:
            logger.error(f"Error retrieving conversation: {e}")
            return None

    def get_stats(self) -> Dict[str, Any]:
        """Get Redis stats"""
        if not self.client:
            return {"status": "unavailable"}

        try:
            info = self.client.info()
            return {
                "status": "connected",
                "used_memory": info.get("used_memory_human"),
                "connected_clients": info.get("connected_clients"),
                "total_commands": info.get("total_commands_processed")
            }
        except redis.exceptions.RedisError as e:
            logger.error(f"Error getting stats: {e}")
            return {"status": "error", "error": str(e)}

    def close(self):
        """Close Redis connection"""
        if self.client:
            self.client.close()
            logger.info("Redis connection closed")


_redis_store: Optional[RedisStore] = None


def get_redis_store() -> RedisStore:
    """Get or create the process-wide Redis store"""
    global _redis_store
    if _redis_store is None:
        _redis_store = RedisStore()
    return _redis_store
