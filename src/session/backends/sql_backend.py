"""
Relational session backend.

Stores one row per session in a `sessions` table through the SQLAlchemy async
ORM. Works with any async driver SQLAlchemy supports (asyncpg, aiosqlite, ...).

Dependencies: sqlalchemy[asyncio]
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

from sqlalchemy import Float, JSON, String, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..ids import is_valid_session_id
from ..models import SessionMetadata, SessionRecord
from .backend import BackendError, SessionBackend

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class SessionRow(Base):
    """ORM row for a session record. Timestamps are epoch seconds."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[float] = mapped_column(Float, nullable=False)
    expires_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True, default=None)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    client_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, default=None)
    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionRow":
        return cls(
            id=record.id,
            created_at=record.created_at,
            updated_at=record.updated_at,
            expires_at=record.expires_at,
            data=record.model_dump()["data"],
            client_address=record.metadata.client_address,
            user_agent=record.metadata.user_agent,
        )

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            expires_at=self.expires_at,
            data=self.data or {},
            metadata=SessionMetadata(client_address=self.client_address, user_agent=self.user_agent),
        )


class SQLBackend(SessionBackend):
    def __init__(self, engine: AsyncEngine, clock: Callable[[], float] = time.time):
        super().__init__()
        self.engine = engine
        self.session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._clock = clock

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> "SQLBackend":
        """
        Build a backend with its own engine.

        pool_pre_ping=True verifies pooled connections before use so a dropped
        database connection surfaces as a failed call instead of a stale handle.
        """
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_async_engine(database_url, **engine_kwargs))

    async def init_schema(self) -> None:
        """Create the sessions table if it does not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

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
            async with self.session_factory() as db:
                db.add(SessionRow.from_record(record))
                await db.commit()
        except IntegrityError as e:
            logger.error(f"Session id collision for {session_id}: {e}")
            raise BackendError(f"Session {session_id} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Database error during session creation for {session_id}: {e}")
            raise BackendError("Database error during session creation") from e

        logger.debug(f"Session {session_id} created successfully")
        return record

    async def read(self, session_id: str) -> Optional[SessionRecord]:
        if not is_valid_session_id(session_id):
            return None
        try:
            async with self.session_factory() as db:
                row = await db.get(SessionRow, session_id)
                if row is None:
                    return None
                return row.to_record()
        except SQLAlchemyError as e:
            logger.error(f"Database error during session read for {session_id}: {e}")
            raise BackendError("Database error during session read") from e

    async def update(self, session_id: str, record: SessionRecord) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            row = SessionRow.from_record(SessionRecord.model_validate({**record.model_dump(), "id": session_id}))
            async with self.session_factory() as db:
                await db.merge(row)
                await db.commit()
            logger.debug(f"Session {session_id} updated successfully")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database error during session update for {session_id}: {e}")
            return False

    async def delete(self, session_id: str) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            async with self.session_factory() as db:
                await db.execute(delete(SessionRow).where(SessionRow.id == session_id))
                await db.commit()
            logger.debug(f"Session {session_id} deleted successfully")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database error during session deletion for {session_id}: {e}")
            return False
