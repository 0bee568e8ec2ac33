import logging
from typing import Optional

from fastapi import FastAPI

from session import SessionManager, SessionSettings
from .config import load_session_settings
from .lifecycle import make_lifespan
from .middleware import setup_middleware
from .routers import misc, session

logger = logging.getLogger('service')


def create_app(settings: Optional[SessionSettings] = None, manager: Optional[SessionManager] = None) -> FastAPI:
    """
    Build the FastAPI application with session handling installed.

    Args:
        settings: Session settings, loaded from the environment when omitted
        manager: Session manager, built from settings when omitted

    Returns:
        Configured FastAPI application. The session manager is available as
        `app.state.session_manager`.
    """
    settings = settings or load_session_settings()
    manager = manager or SessionManager(settings)

    app = FastAPI(title="Session Service", lifespan=make_lifespan(settings))
    app.state.session_manager = manager

    setup_middleware(app, settings, manager)

    app.include_router(misc.router)
    app.include_router(session.router)

    logger.info("Session service app created")
    return app
