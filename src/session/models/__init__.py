import json
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, Field, PrivateAttr

# Reserved expires_at value: the session is already expired and must not be persisted
DESTROYED_EXPIRES_AT = -1.0


class SessionMetadata(BaseModel):
    client_address: Optional[str] = None
    user_agent: str = "<not-set>"


class SessionRecord(BaseModel):
    """Durable state associated with one client, keyed by its id."""
    id: str
    created_at: float = Field(description="Epoch seconds when the session was created")
    updated_at: float = Field(description="Epoch seconds of the last write")
    expires_at: Optional[float] = Field(default=None, description="Epoch seconds, None means the session never expires")
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)

    @property
    def is_destroyed(self) -> bool:
        return self.expires_at == DESTROYED_EXPIRES_AT

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def canonical_data(self) -> str:
        return canonical_json(self.data)


class Session(SessionRecord):
    """
    Session bound to a request.

    Handlers mutate `data` in place; the destroy capability is attached by the
    session manager when the session is bound to the request context.
    """
    _destroyer: Optional[Callable[[], Awaitable[bool]]] = PrivateAttr(default=None)

    @classmethod
    def from_record(cls, record: SessionRecord) -> "Session":
        return cls.model_validate(record.model_dump())

    def bind_destroyer(self, destroyer: Callable[[], Awaitable[bool]]) -> None:
        self._destroyer = destroyer

    async def destroy(self) -> bool:
        """Destroy the session and clear the client cookie. Returns False if nothing changed."""
        if self._destroyer is None:
            return False
        return await self._destroyer()

    async def reload(self) -> None:
        """No-op. The session is read once per request before the handler runs."""

    async def save(self) -> None:
        """No-op. Changes are written after the handler returns, only when the data changed."""

    def to_record(self) -> SessionRecord:
        return SessionRecord.model_validate(self.model_dump())


def canonical_json(value: Any) -> str:
    """Serialize a JSON-like value with sorted keys and no whitespace so equal payloads compare equal."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
