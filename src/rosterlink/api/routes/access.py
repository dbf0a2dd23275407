"""Access checks shared by the roster and record routes."""

from fastapi import HTTPException, status

from rosterlink.api.routes.errors import to_http_exception
from rosterlink.core.exceptions import RosterLinkError
from rosterlink.schemas.account import Account
from rosterlink.schemas.class_schema import ClassRoster
from rosterlink.schemas.roster import RosterEntry
from rosterlink.utils.class_manager import ClassManager
from rosterlink.utils.roster_manager import RosterManager


def managed_class(class_manager: ClassManager, class_id: str, account: Account) -> ClassRoster:
    """Class the account owns or administers, else 403/404."""
    try:
        return class_manager.require_manage(class_id, account)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


def managed_entry(
    roster_manager: RosterManager,
    class_manager: ClassManager,
    entry_id: str,
    account: Account,
) -> RosterEntry:
    """Roster entry whose class the account may manage."""
    try:
        entry = roster_manager.get_entry(entry_id)
        class_manager.require_manage(entry.class_id, account)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return entry


def readable_entry(
    roster_manager: RosterManager,
    class_manager: ClassManager,
    entry_id: str,
    account: Account,
) -> RosterEntry:
    """Roster entry visible to a class manager or to a linked guardian.

    Raises:
        HTTPException: 404 if missing, 403 if the account has no access.
    """
    try:
        entry = roster_manager.get_entry(entry_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    if account.role == "guardian":
        if entry.id not in account.linked_entry_ids:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This child is not linked to your account.",
            )
        return entry
    try:
        class_manager.require_manage(entry.class_id, account)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return entry
