"""Authentication dependencies.

Tokens are issued by the external identity provider; this service only
verifies them and maps the caller to an account document.
"""

import logging
from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from rosterlink.config import (
    IDENTITY_TOKEN_ALGORITHM,
    IDENTITY_TOKEN_AUDIENCE,
    IDENTITY_TOKEN_SECRET,
)
from rosterlink.core.dependencies import AccountManagerDep
from rosterlink.core.exceptions import AccountNotFoundError
from rosterlink.schemas.account import Account, Identity

logger = logging.getLogger(__name__)

# HTTP Bearer token security
security = HTTPBearer()


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Verify the identity token from the Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    options = {} if IDENTITY_TOKEN_AUDIENCE else {"verify_aud": False}
    try:
        payload = jwt.decode(
            credentials.credentials,
            IDENTITY_TOKEN_SECRET,
            algorithms=[IDENTITY_TOKEN_ALGORITHM],
            audience=IDENTITY_TOKEN_AUDIENCE,
            options=options,
        )
    except JWTError as exc:
        logger.info("Rejected identity token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    if not payload.get("sub") or not payload.get("email"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def get_current_identity(token_payload: Dict[str, Any] = Depends(verify_token)) -> Identity:
    """Caller identity as asserted by the identity provider."""
    return Identity(
        account_id=token_payload["sub"],
        email=token_payload["email"],
        email_verified=bool(token_payload.get("email_verified", False)),
    )


def get_current_account(
    account_manager: AccountManagerDep,
    identity: Identity = Depends(get_current_identity),
) -> Account:
    """Get the account of the authenticated caller.

    Raises:
        HTTPException: 404 if the caller never completed signup.
    """
    try:
        return account_manager.get_account(identity.account_id)
    except AccountNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found. Complete signup first.",
        )


def get_current_teacher(account: Account = Depends(get_current_account)) -> Account:
    if account.role != "teacher":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only teachers can perform this action.",
        )
    return account


def get_current_guardian(account: Account = Depends(get_current_account)) -> Account:
    if account.role != "guardian":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only guardians can perform this action.",
        )
    return account
