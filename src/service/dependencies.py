"""
FastAPI dependencies for the session service.

This module provides reusable dependency functions that can be injected
into route handlers throughout the application.
"""
from fastapi import Request, HTTPException

from session import Session, SessionContext


def get_session_context(request: Request) -> SessionContext:
    """
    Get the per-request session context set up by SessionMiddleware.

    Raises:
        HTTPException: 500 when the middleware is not installed
    """
    context = getattr(request.state, "session_context", None)
    if context is None:
        raise HTTPException(status_code=500, detail="Session middleware is not configured")
    return context


def get_session(request: Request) -> Session:
    """Returns the session currently bound to the request."""
    return get_session_context(request).session
