import copy
from typing import Any, Callable, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .backends.backend import SessionBackend

# The cookie is issued this many seconds shorter than the session so it never outlives it
COOKIE_EXPIRY_MARGIN_SECONDS = 60


class CookieOptions(BaseModel):
    """Options forwarded as-is to cookie serialization."""
    domain: Optional[str] = None
    path: str = "/"
    httponly: bool = True
    secure: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"
    max_age: Optional[int] = None


class SessionSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    cookie_name: str
    store_adapter: SessionBackend
    cookie_options: CookieOptions = Field(default_factory=CookieOptions)
    ttl: Optional[int] = Field(default=None, gt=0, description="Session lifetime in seconds, None for sessions that never expire")
    initial_session: Dict[str, Any] = Field(default_factory=dict)
    get_uniq_id: Optional[Callable[[], str]] = None
    secret_key: Optional[str] = Field(default=None, description="When set, cookie values are signed")

    @field_validator("cookie_name")
    @classmethod
    def cookie_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cookie_name must not be blank")
        return value

    @property
    def cookie_max_age(self) -> Optional[int]:
        """Effective cookie max-age. ttl takes precedence over cookie_options.max_age."""
        if self.ttl is None:
            return self.cookie_options.max_age
        if self.ttl > 2 * COOKIE_EXPIRY_MARGIN_SECONDS:
            return self.ttl - COOKIE_EXPIRY_MARGIN_SECONDS
        # Short sessions keep the cookie for half their lifetime
        return max(self.ttl // 2, 1)

    def expires_at_from(self, now: float) -> Optional[float]:
        if self.ttl is None:
            return None
        return now + self.ttl

    def new_session_data(self) -> Dict[str, Any]:
        return copy.deepcopy(self.initial_session)
