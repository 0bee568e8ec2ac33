import copy
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..ids import is_valid_session_id
from ..models import SessionMetadata, SessionRecord
from .backend import BackendError, SessionBackend

logger = logging.getLogger(__name__)


class InMemoryBackend(SessionBackend):
    """
    Reference backend keeping sessions in a process-local dict.

    Records are deep-copied on the way in and out so a handler mutating its
    session never alters the stored snapshot. No method awaits while touching
    the dict, which keeps concurrent requests on one event loop consistent.
    """

    def __init__(self, clock: Callable[[], float] = time.time, max_id_attempts: int = 5):
        super().__init__()
        self._sessions: Dict[str, SessionRecord] = {}
        self._clock = clock
        self._max_id_attempts = max_id_attempts

    async def create(
        self,
        data: Dict[str, Any],
        expires_at: Optional[float],
        metadata: SessionMetadata,
    ) -> SessionRecord:
        session_id = self._new_id()
        now = self._clock()
        record = SessionRecord(
            id=session_id,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
            data=copy.deepcopy(data),
            metadata=metadata.model_copy(),
        )
        self._sessions[session_id] = record
        logger.debug(f"Session {session_id} created")
        return record.model_copy(deep=True)

    async def read(self, session_id: str) -> Optional[SessionRecord]:
        if not is_valid_session_id(session_id):
            return None
        record = self._sessions.get(session_id)
        if record is None:
            logger.debug(f"Session {session_id} not found")
            return None
        return record.model_copy(deep=True)

    async def update(self, session_id: str, record: SessionRecord) -> bool:
        if not is_valid_session_id(session_id):
            return False
        self._sessions[session_id] = SessionRecord.model_validate({**record.model_dump(), "id": session_id})
        logger.debug(f"Session {session_id} updated")
        return True

    async def delete(self, session_id: str) -> bool:
        if not is_valid_session_id(session_id):
            return False
        self._sessions.pop(session_id, None)
        logger.debug(f"Session {session_id} deleted")
        return True

    def clear(self) -> None:
        """Remove every session. Test harness helper, not part of the backend contract."""
        self._sessions.clear()

    def _new_id(self) -> str:
        for _ in range(self._max_id_attempts):
            session_id = self._get_uniq_id()
            if is_valid_session_id(session_id) and session_id not in self._sessions:
                return session_id
        raise BackendError("Could not generate a unique session id")
