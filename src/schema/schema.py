from typing import Any, Optional

from pydantic import BaseModel, Field


class SessionResponse(BaseModel):
    id: str = Field(description="Session id")
    created_at: float = Field(description="Epoch seconds when the session was created")
    expires_at: Optional[float] = Field(
        description="Epoch seconds when the session expires, null if it never expires",
        default=None,
    )
    data: dict[str, Any] = Field(description="Session payload")


class SessionDestroyResponse(BaseModel):
    destroyed: bool = Field(
        description="Whether the session was destroyed. False means the original session is still valid"
    )
