from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from ..ids import generate_session_id
from ..models import SessionMetadata, SessionRecord


class BackendError(Exception):
    """Raised by a backend when a session cannot be created or the store is unreachable."""


class SessionBackend(ABC):
    """
    Storage contract used by the session manager.

    Implementations must be safe to call from concurrent requests and own any
    pooling, timeouts and retries they need. Lookups with a sentinel id never
    reach the underlying store.
    """

    def __init__(self):
        self._get_uniq_id: Callable[[], str] = generate_session_id

    def set_id_generator(self, get_uniq_id: Callable[[], str]) -> None:
        """Install the id generator. Called once when the session manager is set up."""
        self._get_uniq_id = get_uniq_id

    @abstractmethod
    async def create(
        self,
        data: Dict[str, Any],
        expires_at: Optional[float],
        metadata: SessionMetadata,
    ) -> SessionRecord:
        """Store a new session under a fresh id. Raises BackendError on failure."""
        pass

    @abstractmethod
    async def read(self, session_id: str) -> Optional[SessionRecord]:
        """Return the stored session, or None when it does not exist."""
        pass

    @abstractmethod
    async def update(self, session_id: str, record: SessionRecord) -> bool:
        """Write the full record, creating it if missing. Returns False on failure."""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove the session. Returns False on failure."""
        pass
