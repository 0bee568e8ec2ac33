from .schema import SessionDestroyResponse, SessionResponse

__all__ = [
    "SessionDestroyResponse",
    "SessionResponse",
]
