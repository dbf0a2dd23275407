"""Account routes: signup and profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from rosterlink.api.routes.auth import get_current_account, get_current_identity
from rosterlink.api.routes.errors import to_http_exception
from rosterlink.core.dependencies import AccountManagerDep, ReconciliationEngineDep
from rosterlink.core.exceptions import RosterLinkError
from rosterlink.schemas.account import (
    Account,
    CreateAccountRequest,
    Identity,
    SessionStartResponse,
    UpdateAccountRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["Account"])


@router.post("", response_model=SessionStartResponse, status_code=201, summary="Sign up")
def create_account(
    req: CreateAccountRequest,
    account_manager: AccountManagerDep,
    engine: ReconciliationEngineDep,
    identity: Identity = Depends(get_current_identity),
) -> SessionStartResponse:
    """Create the caller's account and link anything already waiting for it.

    A guardian signing up with an email a teacher already entered sees the
    child right away instead of on the next session start.

    Raises:
        HTTPException: 400 for an invalid role, 409 if the account exists.
    """
    try:
        account = account_manager.create_account(
            identity, req.role, req.first_name, req.last_name
        )
    except RosterLinkError as exc:
        raise to_http_exception(exc)

    if engine.require_verified_email and not identity.email_verified:
        return SessionStartResponse(account=account, newly_linked_ids=[])
    account, newly_linked = engine.reconcile_account(account)
    return SessionStartResponse(account=account, newly_linked_ids=newly_linked)


@router.get("/me", response_model=Account, summary="Current account")
def get_me(current_account: Account = Depends(get_current_account)) -> Account:
    return current_account


@router.patch("/me", response_model=Account, summary="Update current account")
def update_me(
    req: UpdateAccountRequest,
    account_manager: AccountManagerDep,
    current_account: Account = Depends(get_current_account),
) -> Account:
    if req.first_name is not None and not req.first_name.strip():
        raise HTTPException(status_code=400, detail="First name cannot be empty.")
    if req.last_name is not None and not req.last_name.strip():
        raise HTTPException(status_code=400, detail="Last name cannot be empty.")
    try:
        return account_manager.update_profile(
            current_account.id,
            first_name=req.first_name,
            last_name=req.last_name,
            notifications_enabled=req.notifications_enabled,
        )
    except RosterLinkError as exc:
        raise to_http_exception(exc)
