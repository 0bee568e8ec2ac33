import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from fastapi import Request

from session import CookieAction, SessionContext, SessionManager, SessionMetadata, SessionSettings
from ..cookie_signing import CookieSigner

logger = logging.getLogger('service.middleware')

LOOPBACK_ADDRESS = "127.0.0.1"
UNKNOWN_USER_AGENT = "<not-set>"

# An unverifiable cookie resolves like a malformed one
REJECTED_COOKIE = ""


def get_session_metadata(request: Request) -> SessionMetadata:
    """Client address (first non-loopback of X-Forwarded-For or the peer) and user agent."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        addresses = [address.strip() for address in forwarded.split(",")]
    else:
        addresses = [request.client.host] if request.client else []
    addresses = [address for address in addresses if address and address != LOOPBACK_ADDRESS]

    user_agent = request.headers.get("user-agent", "").strip()
    return SessionMetadata(
        client_address=addresses[0] if addresses else None,
        user_agent=user_agent or UNKNOWN_USER_AGENT,
    )


class SessionMiddleware(BaseHTTPMiddleware):
    """Middleware to resolve the request session before the handler and save it after"""

    def __init__(self, app, settings: SessionSettings, manager: Optional[SessionManager] = None):
        super().__init__(app)
        self.settings = settings
        self.manager = manager or SessionManager(settings)
        self.signer = CookieSigner(settings.secret_key) if settings.secret_key else None

    def _read_cookie(self, request: Request) -> Optional[str]:
        cookie_value = request.cookies.get(self.settings.cookie_name)
        if cookie_value is None or self.signer is None:
            return cookie_value
        if not self.signer.verify(cookie_value):
            logger.warning("Rejected session cookie with an invalid signature")
            return REJECTED_COOKIE
        return cookie_value

    def _apply_cookie(self, context: SessionContext, response: Response) -> None:
        options = self.settings.cookie_options
        if context.cookie_action is CookieAction.SET and context.issued_id is not None:
            value = self.signer.sign(context.issued_id) if self.signer else context.issued_id
            response.set_cookie(
                key=self.settings.cookie_name,
                value=value,
                max_age=self.settings.cookie_max_age,
                path=options.path,
                domain=options.domain,
                secure=options.secure,
                httponly=options.httponly,
                samesite=options.samesite,
            )
        elif context.cookie_action is CookieAction.CLEAR:
            response.delete_cookie(
                key=self.settings.cookie_name,
                path=options.path,
                domain=options.domain,
                secure=options.secure,
                httponly=options.httponly,
                samesite=options.samesite,
            )

    async def dispatch(self, request: Request, call_next):
        context = await self.manager.resolve(self._read_cookie(request), get_session_metadata(request))
        request.state.session_context = context
        logger.debug(f"Resolved session {context.session.id} ({context.state.value}) for {request.url.path}")

        # If the handler fails or the request is cancelled nothing is persisted
        response = await call_next(request)

        await self.manager.persist(context)
        self._apply_cookie(context, response)
        return response
