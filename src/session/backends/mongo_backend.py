import logging
import time
from typing import Any, Callable, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..ids import is_valid_session_id
from ..models import SessionMetadata, SessionRecord
from .backend import BackendError, SessionBackend

logger = logging.getLogger(__name__)

COL = "sessions"


def _to_doc(record: SessionRecord) -> Dict[str, Any]:
    doc = record.model_dump()
    doc["_id"] = doc.pop("id")
    return doc


def _to_record(doc: Dict[str, Any]) -> SessionRecord:
    doc = dict(doc)
    doc["id"] = doc.pop("_id")
    return SessionRecord.model_validate(doc)


class MongoBackend(SessionBackend):
    """Document-store backend: one document per session, keyed by `_id`."""

    def __init__(self, collection: AsyncIOMotorCollection, clock: Callable[[], float] = time.time):
        super().__init__()
        self.collection = collection
        self._clock = clock

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
            await self.collection.insert_one(_to_doc(record))
        except DuplicateKeyError as e:
            raise BackendError(f"Session {session_id} already exists") from e
        except PyMongoError as e:
            logger.error(f"MongoDB error during session creation for {session_id}: {e}")
            raise BackendError("Database error during session creation") from e

        logger.debug(f"Session {session_id} created successfully")
        return record

    async def read(self, session_id: str) -> Optional[SessionRecord]:
        if not is_valid_session_id(session_id):
            return None
        try:
            doc = await self.collection.find_one({"_id": session_id})
        except PyMongoError as e:
            logger.error(f"MongoDB error during session read for {session_id}: {e}")
            raise BackendError("Database error during session read") from e

        if not doc:
            return None
        try:
            return _to_record(doc)
        except ValidationError as e:
            logger.error(f"Invalid session document for session {session_id}: {e}")
            return None

    async def update(self, session_id: str, record: SessionRecord) -> bool:
        if not is_valid_session_id(session_id):
            return False
        doc = _to_doc(SessionRecord.model_validate({**record.model_dump(), "id": session_id}))
        try:
            await self.collection.replace_one({"_id": session_id}, doc, upsert=True)
            logger.debug(f"Session {session_id} updated successfully")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB error during session update for {session_id}: {e}")
            return False

    async def delete(self, session_id: str) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            await self.collection.delete_one({"_id": session_id})
            logger.debug(f"Session {session_id} deleted successfully")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB error during session deletion for {session_id}: {e}")
            return False
