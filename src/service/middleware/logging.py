import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

logger = logging.getLogger('service.middleware')


def describe_session(request: Request) -> str:
    """One-line summary of what the session middleware did for this request."""
    context = getattr(request.state, "session_context", None)
    if context is None:
        return "session=unresolved"
    return (
        f"session={context.session.id} state={context.state.value} "
        f"cookie={context.cookie_action.value} saved={context.saved} detached={context.detached}"
    )


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Traces each request with the outcome of session resolution and persistence"""

    def __init__(self, app, cookie_name: str = "session"):
        super().__init__(app)
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next):
        # Never log the cookie value itself
        has_cookie = self.cookie_name in request.cookies
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"SESSION_TRACE: {request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed_ms:.1f}ms cookie_in={has_cookie} {describe_session(request)}"
        )
        if response.status_code >= 400:
            logger.warning(f"Request {request.method} {request.url.path} failed with {response.status_code}")
        return response
