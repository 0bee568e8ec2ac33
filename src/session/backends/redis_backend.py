import logging
import time
from typing import Any, Callable, Dict, Optional

import redis.asyncio as aioredis
from redis import RedisError, ConnectionError as RedisConnectionError
from pydantic import ValidationError

from ..ids import is_valid_session_id
from ..models import SessionMetadata, SessionRecord
from .backend import BackendError, SessionBackend

logger = logging.getLogger(__name__)


class RedisBackend(SessionBackend):
    def __init__(
        self,
        redis_client: aioredis.Redis,
        key_prefix: str = "session:",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the Redis backend with an async Redis client."""
        super().__init__()
        self.redis_client = redis_client
        self.key_prefix = key_prefix
        self._clock = clock

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def _log_redis_error(self, operation: str, session_id: str, error: Exception) -> None:
        """Centralized logging for Redis operations."""
        if isinstance(error, RedisConnectionError):
            logger.error(f"Redis connection failed during {operation} for session {session_id}: {error}")
        elif isinstance(error, RedisError):
            logger.error(f"Redis error during {operation} for session {session_id}: {error}")
        else:
            logger.error(f"Unexpected error during {operation} for session {session_id}: {error}")

    async def create(
        self,
        data: Dict[str, Any],
        expires_at: Optional[float],
        metadata: SessionMetadata,
    ) -> SessionRecord:
        session_id = self._get_uniq_id()
        if not is_valid_session_id(session_id):
            raise BackendError(f"Id generator returned a reserved session id: {session_id!r}")

        now = self._clock()
        record = SessionRecord(
            id=session_id,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
            data=data,
            metadata=metadata,
        )
        try:
            # NX so an id collision never overwrites another client's session
            created = await self.redis_client.set(self._key(session_id), record.model_dump_json(), nx=True)
        except (RedisError, ValueError, TypeError) as e:
            self._log_redis_error("session creation", session_id, e)
            raise BackendError("Database error during session creation") from e

        if not created:
            raise BackendError(f"Session {session_id} already exists")

        logger.debug(f"Session {session_id} created successfully")
        return record

    async def read(self, session_id: str) -> Optional[SessionRecord]:
        if not is_valid_session_id(session_id):
            return None
        try:
            raw = await self.redis_client.get(self._key(session_id))
        except RedisError as e:
            self._log_redis_error("session read", session_id, e)
            raise BackendError("Database error during session read") from e

        if raw is None:
            return None

        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Invalid session data format for session {session_id}: {e}")
            return None

    async def update(self, session_id: str, record: SessionRecord) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            payload = SessionRecord.model_validate({**record.model_dump(), "id": session_id}).model_dump_json()
            await self.redis_client.set(self._key(session_id), payload)
            logger.debug(f"Session {session_id} updated successfully")
            return True
        except (RedisError, ValidationError, ValueError, TypeError) as e:
            self._log_redis_error("session update", session_id, e)
            return False

    async def delete(self, session_id: str) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            deleted_count = await self.redis_client.delete(self._key(session_id))
        except RedisError as e:
            self._log_redis_error("session deletion", session_id, e)
            return False

        if deleted_count == 0:
            logger.debug(f"Session {session_id} was already absent")
        else:
            logger.debug(f"Session {session_id} deleted successfully")
        return True
