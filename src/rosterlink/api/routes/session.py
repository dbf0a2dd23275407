"""Session routes.

The client calls session start right after the identity provider signs the
user in. This is where pending invites for the caller's email get linked.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from rosterlink.api.routes.auth import get_current_identity
from rosterlink.core.dependencies import ReconciliationEngineDep
from rosterlink.core.exceptions import AccountNotFoundError
from rosterlink.schemas.account import Identity, SessionStartResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["Session"])


@router.post("/start", response_model=SessionStartResponse, summary="Start a session")
def start_session(
    engine: ReconciliationEngineDep,
    identity: Identity = Depends(get_current_identity),
) -> SessionStartResponse:
    """Reconcile the caller's account and return it.

    Args:
        engine: Injected ReconciliationEngine instance.
        identity: Authenticated caller.

    Returns:
        SessionStartResponse with the fresh account and newly linked ids.

    Raises:
        HTTPException: 404 if the caller has no account yet.
    """
    try:
        account, newly_linked = engine.start_session(identity)
    except AccountNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found. Complete signup first.",
        )
    if newly_linked:
        logger.info("Session start linked %d item(s) for %s", len(newly_linked), account.id)
    return SessionStartResponse(account=account, newly_linked_ids=newly_linked)
