import logging as log
from typing import Optional

from fastapi import FastAPI

from session import SessionManager, SessionSettings
from .logging import RequestResponseLoggingMiddleware
from .error_handling import ErrorHandlingMiddleware
from .session import SessionMiddleware, get_session_metadata

logger = log.getLogger('service.middleware')


def setup_middleware(app: FastAPI, settings: SessionSettings, manager: Optional[SessionManager] = None):
    """
    Setup all middleware for the FastAPI application.

    Middleware are added in reverse order (last added = first executed).
    Current order of execution:
    1. ErrorHandlingMiddleware (catches unhandled errors)
    2. RequestResponseLoggingMiddleware (traces the session outcome of each request)
    3. SessionMiddleware (resolves the session, saves it after the handler)

    SessionMiddleware sits inside the error handler so a handler that raises
    never gets its session saved.

    Args:
        app: FastAPI application instance
        settings: Session settings
        manager: Session manager, built from settings when omitted
    """
    app.add_middleware(SessionMiddleware, settings=settings, manager=manager)

    app.add_middleware(RequestResponseLoggingMiddleware, cookie_name=settings.cookie_name)

    app.add_middleware(ErrorHandlingMiddleware)

    logger.info(f"Session middleware configured with cookie '{settings.cookie_name}'")


__all__ = [
    'setup_middleware',
    'RequestResponseLoggingMiddleware',
    'ErrorHandlingMiddleware',
    'SessionMiddleware',
    'get_session_metadata',
]
