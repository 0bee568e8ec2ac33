"""Cookie-identified server-side sessions with pluggable storage backends."""

from .backends import BackendError, InMemoryBackend, SessionBackend
from .config import CookieOptions, SessionSettings
from .context import CookieAction, ResolveState, SessionContext
from .cookie import ParsedCookie, parse_session_cookie, resolve_session_id
from .ids import FORBIDDEN_SESSION_IDS, generate_session_id, is_valid_session_id
from .manager import SessionManager
from .models import DESTROYED_EXPIRES_AT, Session, SessionMetadata, SessionRecord

__all__ = [
    "BackendError",
    "InMemoryBackend",
    "SessionBackend",
    "CookieOptions",
    "SessionSettings",
    "CookieAction",
    "ResolveState",
    "SessionContext",
    "ParsedCookie",
    "parse_session_cookie",
    "resolve_session_id",
    "FORBIDDEN_SESSION_IDS",
    "generate_session_id",
    "is_valid_session_id",
    "SessionManager",
    "DESTROYED_EXPIRES_AT",
    "Session",
    "SessionMetadata",
    "SessionRecord",
]
