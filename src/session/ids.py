import uuid
from typing import Optional

# Values that must never be used as a lookup key, compared after stripping whitespace
FORBIDDEN_SESSION_IDS = frozenset({"", "undefined", "null", "__proto__"})


def generate_session_id() -> str:
    """Default id generator. UUID4 strings never contain the '.' signature separator."""
    return str(uuid.uuid4())


def is_valid_session_id(session_id: Optional[str]) -> bool:
    if session_id is None:
        return False
    return session_id.strip() not in FORBIDDEN_SESSION_IDS
