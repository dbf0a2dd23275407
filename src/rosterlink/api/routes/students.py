"""Roster entry (student) routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from rosterlink.api.routes.access import managed_class, managed_entry, readable_entry
from rosterlink.api.routes.auth import get_current_account, get_current_teacher
from rosterlink.api.routes.errors import to_http_exception
from rosterlink.core.dependencies import ClassManagerDep, RosterManagerDep
from rosterlink.core.exceptions import RosterLinkError
from rosterlink.schemas.account import Account
from rosterlink.schemas.invite import Invite
from rosterlink.schemas.roster import (
    CreateEntryRequest,
    GuardianInfo,
    GuardianRef,
    LinkEntryRequest,
    RosterEntry,
    UpdateEntryRequest,
)

router = APIRouter(prefix="/api", tags=["Student"])


@router.get(
    "/classes/{class_id}/students",
    response_model=List[RosterEntry],
    summary="List students of a class",
)
def list_students(
    class_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    q: Optional[str] = Query(default=None, description="Name filter."),
    current_account: Account = Depends(get_current_account),
) -> List[RosterEntry]:
    managed_class(class_manager, class_id, current_account)
    if q:
        return roster_manager.search_entries(class_id, q)
    return roster_manager.list_entries(class_id)


@router.post(
    "/classes/{class_id}/students",
    response_model=RosterEntry,
    status_code=201,
    summary="Add a student",
)
def create_student(
    class_id: str,
    req: CreateEntryRequest,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> RosterEntry:
    """Create a roster entry and invite its guardians.

    Raises:
        HTTPException: 400 on too many or duplicate guardians.
    """
    managed_class(class_manager, class_id, current_account)
    try:
        return roster_manager.create_entry(
            class_id, current_account.id, req.first_name, req.last_name, req.guardians
        )
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.post(
    "/classes/{class_id}/students/link",
    response_model=RosterEntry,
    status_code=201,
    summary="Enroll an existing student",
)
def link_student(
    class_id: str,
    req: LinkEntryRequest,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> RosterEntry:
    """Enroll a child already known from another class into this one."""
    managed_class(class_manager, class_id, current_account)
    try:
        return roster_manager.link_existing_entry_to_collection(
            req.entry_id, class_id, current_account.id
        )
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/classes/{class_id}/students/{entry_id}", summary="Remove a student")
def delete_student(
    class_id: str,
    entry_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    managed_class(class_manager, class_id, current_account)
    try:
        records = roster_manager.delete_entry(entry_id, class_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "records_deleted": records}


@router.get(
    "/students/lookup",
    response_model=List[RosterEntry],
    summary="Find students by guardian email",
)
def lookup_students(
    roster_manager: RosterManagerDep,
    email: str = Query(min_length=3),
    current_account: Account = Depends(get_current_teacher),
) -> List[RosterEntry]:
    """Entries listing email as a guardian, to enroll a known child elsewhere."""
    return roster_manager.find_entries_by_guardian_email(email)


@router.get("/students/{entry_id}", response_model=RosterEntry, summary="Get a student")
def get_student(
    entry_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> RosterEntry:
    return readable_entry(roster_manager, class_manager, entry_id, current_account)


@router.patch("/students/{entry_id}", response_model=RosterEntry, summary="Rename a student")
def update_student(
    entry_id: str,
    req: UpdateEntryRequest,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> RosterEntry:
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        return roster_manager.update_entry(entry_id, req.first_name, req.last_name)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.post(
    "/students/{entry_id}/guardians",
    response_model=GuardianRef,
    status_code=201,
    summary="Add a guardian",
)
def add_guardian(
    entry_id: str,
    req: GuardianInfo,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> GuardianRef:
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        return roster_manager.add_guardian(entry_id, req)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/students/{entry_id}/guardians/{email}", summary="Remove a guardian")
def remove_guardian(
    entry_id: str,
    email: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        roster_manager.remove_guardian(entry_id, email)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Guardian removed successfully"}


@router.post(
    "/students/{entry_id}/invites/resend",
    response_model=List[Invite],
    summary="Resend missing guardian invites",
)
def resend_invites(
    entry_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_account),
) -> List[Invite]:
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        return roster_manager.resend_invites(entry_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
