"""
Session lifecycle for HTTP requests.

The resolve phase turns the request cookie into a session bound to a
SessionContext; the persist phase writes the session back once the handler
is done, skipping the write when the data did not change. Store failures in
either phase are logged and never reach the client.
"""
import logging
import time
from functools import partial
from typing import Callable, Optional

from .backends.backend import SessionBackend
from .config import SessionSettings
from .context import CookieAction, ResolveState, SessionContext
from .cookie import resolve_session_id
from .ids import generate_session_id
from .models import Session, SessionMetadata, SessionRecord, canonical_json
from .regenerate import destroy_session

logger = logging.getLogger('session.manager')


class SessionManager:
    def __init__(self, settings: SessionSettings, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.store: SessionBackend = settings.store_adapter
        self.get_uniq_id: Callable[[], str] = settings.get_uniq_id or generate_session_id
        self._clock = clock
        self.store.set_id_generator(self.get_uniq_id)

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # Resolve phase
    # ------------------------------------------------------------------

    async def resolve(self, cookie_value: Optional[str], metadata: SessionMetadata) -> SessionContext:
        """
        Bind a session to the request.

        Args:
            cookie_value: Raw session cookie, None when the request carries none
            metadata: Client address and user agent of the request

        Returns:
            SessionContext whose session is always set
        """
        if cookie_value is None:
            context = await self._resolve_without_cookie(metadata)
        else:
            session_id = resolve_session_id(cookie_value)
            if session_id is None:
                logger.debug("Session cookie carries no usable id, minting a new session")
                context = self._mint(cookie_value, metadata)
            else:
                context = await self._resolve_with_id(cookie_value, session_id, metadata)

        self.bind(context)
        return context

    async def _resolve_without_cookie(self, metadata: SessionMetadata) -> SessionContext:
        try:
            record = await self.store.create(
                self.settings.new_session_data(),
                self.settings.expires_at_from(self.now()),
                metadata,
            )
        except Exception as e:
            logger.error(f"Could not create session, continuing with a local session: {e}")
            return SessionContext(
                cookie_value=None,
                state=ResolveState.NO_COOKIE,
                session=self._new_session(self.get_uniq_id(), metadata),
                detached=True,
            )

        logger.debug(f"Created session {record.id}")
        return SessionContext(
            cookie_value=None,
            state=ResolveState.NO_COOKIE,
            session=self._restore(record),
            issued_id=record.id,
            cookie_action=CookieAction.SET,
        )

    async def _resolve_with_id(self, cookie_value: str, session_id: str, metadata: SessionMetadata) -> SessionContext:
        try:
            record = await self.store.read(session_id)
        except Exception as e:
            logger.error(f"Could not read session {session_id}, continuing with a local session: {e}")
            return SessionContext(
                cookie_value=cookie_value,
                state=ResolveState.COOKIE_WITH_ID,
                session=self._new_session(self.get_uniq_id(), metadata),
                detached=True,
            )

        if record is not None and record.is_expired(self.now()):
            logger.info(f"Session {session_id} expired, deleting it")
            if not await self._delete(session_id):
                logger.error(f"Could not delete expired session {session_id}")
            record = None

        if record is None:
            return self._mint(cookie_value, metadata)

        return SessionContext(
            cookie_value=cookie_value,
            state=ResolveState.COOKIE_WITH_ID,
            session=self._restore(record),
        )

    def _mint(self, cookie_value: Optional[str], metadata: SessionMetadata) -> SessionContext:
        """Bind a fresh session that is only written to the store during persist."""
        session_id = self.get_uniq_id()
        return SessionContext(
            cookie_value=cookie_value,
            state=ResolveState.COOKIE_NO_ID,
            session=self._new_session(session_id, metadata),
            issued_id=session_id,
            pending_create=True,
            cookie_action=CookieAction.SET,
        )

    def _new_session(self, session_id: str, metadata: SessionMetadata) -> Session:
        now = self.now()
        return Session(
            id=session_id,
            created_at=now,
            updated_at=now,
            expires_at=self.settings.expires_at_from(now),
            data=self.settings.new_session_data(),
            metadata=metadata,
        )

    def _restore(self, record: SessionRecord) -> Session:
        # Fields added to initial_session after the record was stored get their defaults
        data = self.settings.new_session_data()
        data.update(record.data)
        return Session.from_record(record.model_copy(update={"data": data}))

    def bind(self, context: SessionContext) -> None:
        """Attach the destroy capability of this context to its current session."""
        context.session.bind_destroyer(partial(self.destroy, context))

    # ------------------------------------------------------------------
    # Persist phase
    # ------------------------------------------------------------------

    async def persist(self, context: SessionContext) -> bool:
        """
        Write the session back if its data changed.

        Returns:
            True when a write happened
        """
        session = context.session
        if session.is_destroyed:
            logger.debug(f"Session {session.id} is marked as destroyed, not saving")
            return False

        session_id = context.session_id
        if session_id is None:
            return False

        try:
            previous = await self.store.read(session_id)
        except Exception as e:
            logger.error(f"Could not load stored state of session {session_id}: {e}")
            previous = None

        try:
            next_data = session.canonical_data()
        except (TypeError, ValueError) as e:
            logger.error(f"Session {session_id} data is not JSON serializable, not saving: {e}")
            return False

        previous_data = previous.canonical_data() if previous is not None else canonical_json(None)
        if next_data == previous_data:
            logger.debug(f"Session {session_id} unchanged, skipping write")
            return False

        updated_at = max(self.now(), session.updated_at)
        if previous is not None:
            updated_at = max(updated_at, previous.updated_at)
        next_record = session.to_record().model_copy(update={"id": session_id, "updated_at": updated_at})

        try:
            saved = await self.store.update(session_id, next_record)
        except Exception as e:
            logger.error(f"Error saving session {session_id}: {e}")
            saved = False

        if not saved:
            logger.error(f"Could not save session {session_id}")
            if context.pending_create:
                # The new id was never stored, so don't hand it to the client
                context.cookie_action = CookieAction.CLEAR if context.cookie_value is not None else CookieAction.NONE
            return False

        context.pending_create = False
        context.saved = True
        logger.debug(f"Saved session {session_id}")
        return True

    # ------------------------------------------------------------------
    # Destroy
    # ------------------------------------------------------------------

    async def destroy(self, context: SessionContext) -> bool:
        return await destroy_session(self, context)

    async def _delete(self, session_id: str) -> bool:
        try:
            return await self.store.delete(session_id)
        except Exception as e:
            logger.error(f"Error deleting session {session_id}: {e}")
            return False
