from typing import Any, Annotated

from fastapi import APIRouter, Body, Depends
import logging

from schema import SessionDestroyResponse, SessionResponse
from session import Session, SessionContext
from service.dependencies import get_session, get_session_context

logger = logging.getLogger('service.routers.session')

router = APIRouter(
    tags=["session"],
)


def _to_response(session: Session) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        created_at=session.created_at,
        expires_at=session.expires_at,
        data=session.data,
    )


@router.get("/session")
async def read_session(session: Annotated[Session, Depends(get_session)]) -> SessionResponse:
    """Return the session bound to this request."""
    return _to_response(session)


@router.patch("/session")
async def update_session(
    session: Annotated[Session, Depends(get_session)],
    changes: Annotated[dict[str, Any], Body()],
) -> SessionResponse:
    """
    Merge the JSON body into the session data.

    The change is saved once the response is ready.
    """
    session.data.update(changes)
    logger.debug(f"Session {session.id} data keys updated: {sorted(changes)}")
    return _to_response(session)


@router.post("/session/destroy")
async def destroy_session(context: Annotated[SessionContext, Depends(get_session_context)]) -> SessionDestroyResponse:
    """Destroy the session and clear the cookie."""
    destroyed = await context.session.destroy()
    return SessionDestroyResponse(destroyed=destroyed)
