"""Guardian-facing children view.

A child enrolled in several classes is stored as several roster entries; this
view shows one child per name and merges the records of all their entries.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from rosterlink.api.routes.auth import get_current_guardian
from rosterlink.core.dependencies import (
    AttendanceManagerDep,
    HomeworkManagerDep,
    RosterManagerDep,
)
from rosterlink.schemas.account import Account
from rosterlink.schemas.children import ChildIdentity
from rosterlink.schemas.records import AttendanceRecord, HomeworkRecord
from rosterlink.utils.dedup_view import find_identity, group_by_identity, resolve_storage_ids
from rosterlink.utils.roster_manager import RosterManager

router = APIRouter(prefix="/api/children", tags=["Children"])


def _children_of(roster_manager: RosterManager, account: Account) -> List[ChildIdentity]:
    return group_by_identity(roster_manager.get_entries(account.linked_entry_ids))


def _storage_ids(roster_manager: RosterManager, account: Account, child_id: str) -> List[str]:
    identity = find_identity(_children_of(roster_manager, account), child_id)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child '{child_id}' not found.",
        )
    return resolve_storage_ids(identity)


@router.get("", response_model=List[ChildIdentity], summary="List my children")
def list_children(
    roster_manager: RosterManagerDep,
    current_account: Account = Depends(get_current_guardian),
) -> List[ChildIdentity]:
    return _children_of(roster_manager, current_account)


@router.get(
    "/homework",
    response_model=List[HomeworkRecord],
    summary="Homework of all my children",
)
def list_all_homework(
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_guardian),
) -> List[HomeworkRecord]:
    return homework_manager.list_homework_for_entries(current_account.linked_entry_ids)


@router.get(
    "/attendance",
    response_model=List[AttendanceRecord],
    summary="Attendance of all my children",
)
def list_all_attendance(
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_guardian),
) -> List[AttendanceRecord]:
    return attendance_manager.list_attendance_for_entries(current_account.linked_entry_ids)


@router.get(
    "/{child_id}/homework",
    response_model=List[HomeworkRecord],
    summary="Homework across all of a child's classes",
)
def list_child_homework(
    child_id: str,
    roster_manager: RosterManagerDep,
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_guardian),
) -> List[HomeworkRecord]:
    entry_ids = _storage_ids(roster_manager, current_account, child_id)
    return homework_manager.list_homework_for_entries(entry_ids)


@router.get(
    "/{child_id}/attendance",
    response_model=List[AttendanceRecord],
    summary="Attendance across all of a child's classes",
)
def list_child_attendance(
    child_id: str,
    roster_manager: RosterManagerDep,
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_guardian),
) -> List[AttendanceRecord]:
    entry_ids = _storage_ids(roster_manager, current_account, child_id)
    return attendance_manager.list_attendance_for_entries(entry_ids)
