"""
Session token resolution.

The cookie carries either the bare session id or `<id>.<signature>`. Signature
verification happens before this module runs (see service.cookie_signing), so
only the prefix before the first '.' is ever used here.
"""
from typing import NamedTuple, Optional

from .ids import is_valid_session_id

SIGNATURE_SEPARATOR = "."


class ParsedCookie(NamedTuple):
    session_id: str
    signature: Optional[str]


def parse_session_cookie(raw: str) -> ParsedCookie:
    """
    Split a raw cookie value on the first separator.

    Args:
        raw: Cookie value as received from the client

    Returns:
        ParsedCookie with the id prefix and the signature part (None when unsigned)
    """
    session_id, separator, signature = raw.partition(SIGNATURE_SEPARATOR)
    return ParsedCookie(session_id=session_id, signature=signature if separator else None)


def resolve_session_id(raw: Optional[str]) -> Optional[str]:
    """Return the session id carried by a cookie, or None when absent or a sentinel value."""
    if raw is None:
        return None
    session_id = parse_session_cookie(raw).session_id
    if not is_valid_session_id(session_id):
        return None
    return session_id
