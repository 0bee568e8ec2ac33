"""
Destroy-and-reissue for request sessions.

Destroying is split into a pure planning step that builds the replacement
session and a snapshot of the context, and an apply step that swaps the
context, deletes the stored record and rolls the swap back if the delete
fails. The caller either ends up with no valid session or with the original
one fully intact.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from .context import CookieAction, SessionContext
from .models import DESTROYED_EXPIRES_AT, Session

if TYPE_CHECKING:
    from .manager import SessionManager

logger = logging.getLogger('session.regenerate')


@dataclass(frozen=True)
class ContextSnapshot:
    session: Session
    issued_id: Optional[str]
    pending_create: bool
    detached: bool
    destroyed: bool
    cookie_action: CookieAction


@dataclass(frozen=True)
class DestroyPlan:
    original_id: Optional[str]
    replacement: Session
    snapshot: ContextSnapshot


def plan_destroy(context: SessionContext, new_id: str, now: float, initial_data: Dict[str, Any]) -> DestroyPlan:
    """Build the replacement session and the rollback snapshot without touching the context."""
    replacement = Session(
        id=new_id,
        created_at=now,
        updated_at=now,
        expires_at=DESTROYED_EXPIRES_AT,
        data=initial_data,
        metadata=context.session.metadata.model_copy(),
    )
    snapshot = ContextSnapshot(
        session=context.session,
        issued_id=context.issued_id,
        pending_create=context.pending_create,
        detached=context.detached,
        destroyed=context.destroyed,
        cookie_action=context.cookie_action,
    )
    return DestroyPlan(original_id=context.record_id, replacement=replacement, snapshot=snapshot)


def apply_plan(context: SessionContext, plan: DestroyPlan) -> None:
    context.session = plan.replacement
    context.issued_id = None
    context.pending_create = False
    context.detached = True
    context.destroyed = True
    context.cookie_action = CookieAction.CLEAR


def rollback_plan(context: SessionContext, plan: DestroyPlan) -> None:
    snapshot = plan.snapshot
    context.session = snapshot.session
    context.issued_id = snapshot.issued_id
    context.pending_create = snapshot.pending_create
    context.detached = snapshot.detached
    context.destroyed = snapshot.destroyed
    context.cookie_action = snapshot.cookie_action

    # Re-issue the original cookie
    if plan.original_id is not None:
        context.issued_id = plan.original_id
        context.cookie_action = CookieAction.SET


async def destroy_session(manager: "SessionManager", context: SessionContext) -> bool:
    """
    Swap the request session for an expired replacement and delete the stored record.

    Returns:
        True when the session is gone, False when the delete failed and the
        original session was restored
    """
    plan = plan_destroy(context, manager.get_uniq_id(), manager.now(), manager.settings.new_session_data())
    apply_plan(context, plan)
    manager.bind(context)

    if plan.original_id is None:
        logger.debug("Destroyed a session that was never stored")
        return True

    try:
        deleted = await manager.store.delete(plan.original_id)
    except Exception as e:
        logger.error(f"Error deleting session {plan.original_id}: {e}")
        deleted = False

    if not deleted:
        logger.error(f"Could not destroy session {plan.original_id}, restoring it")
        rollback_plan(context, plan)
        return False

    logger.info(f"Session {plan.original_id} destroyed")
    return True
