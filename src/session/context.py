from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .cookie import resolve_session_id
from .models import Session


class ResolveState(str, Enum):
    NO_COOKIE = "no_cookie"
    COOKIE_WITH_ID = "cookie_with_id"
    COOKIE_NO_ID = "cookie_no_id"


class CookieAction(str, Enum):
    NONE = "none"
    SET = "set"
    CLEAR = "clear"


@dataclass
class SessionContext:
    """
    Per-request session state, threaded from the resolve phase to the persist phase.

    Attributes:
        cookie_value: Raw session cookie received with the request, None when absent
        state: How the session was resolved
        session: Session bound to the request, always present
        issued_id: Id the response cookie will carry when this request minted one
        pending_create: The bound session exists only locally and is written during persist
        detached: The bound session must never be written (store unavailable, or destroyed)
        destroyed: The record the cookie pointed at has been deleted during this request
        cookie_action: What to do with the response cookie
        saved: The persist phase wrote the session
    """
    cookie_value: Optional[str]
    state: ResolveState
    session: Session
    issued_id: Optional[str] = None
    pending_create: bool = False
    detached: bool = False
    destroyed: bool = False
    cookie_action: CookieAction = CookieAction.NONE
    saved: bool = False

    @property
    def record_id(self) -> Optional[str]:
        """
        Id of the stored record this request is bound to, whether or not it may be written.

        Re-resolved from the request cookie unless this request issued a new id,
        so a handler changing `session.id` can never redirect a write or a delete.
        """
        if self.destroyed:
            return None
        if self.issued_id is not None:
            return self.issued_id
        return resolve_session_id(self.cookie_value)

    @property
    def session_id(self) -> Optional[str]:
        """Key used to read and write the stored record, None when the session must not be written."""
        if self.detached:
            return None
        return self.record_id
