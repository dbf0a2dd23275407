"""Homework and attendance routes."""

from typing import List

from fastapi import APIRouter, Depends

from rosterlink.api.routes.access import managed_class, managed_entry, readable_entry
from rosterlink.api.routes.auth import get_current_account
from rosterlink.api.routes.errors import to_http_exception
from rosterlink.core.dependencies import (
    AttendanceManagerDep,
    ClassManagerDep,
    HomeworkManagerDep,
    RosterManagerDep,
)
from rosterlink.core.exceptions import RosterLinkError
from rosterlink.schemas.account import Account
from rosterlink.schemas.records import (
    AttendanceRecord,
    CreateAttendanceRequest,
    CreateHomeworkRequest,
    HomeworkRecord,
    UpdateAttendanceRequest,
    UpdateHomeworkRequest,
)

router = APIRouter(prefix="/api", tags=["Records"])


# --- Homework ---


@router.post(
    "/students/{entry_id}/homework",
    response_model=HomeworkRecord,
    status_code=201,
    summary="Assign homework",
)
def create_homework(
    entry_id: str,
    req: CreateHomeworkRequest,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_account),
) -> HomeworkRecord:
    """Assign homework to a student; linked guardians are notified."""
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        return homework_manager.create_homework(entry_id, current_account.id, req)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.get(
    "/students/{entry_id}/homework",
    response_model=List[HomeworkRecord],
    summary="List a student's homework",
)
def list_homework(
    entry_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_account),
) -> List[HomeworkRecord]:
    readable_entry(roster_manager, class_manager, entry_id, current_account)
    return homework_manager.list_homework_for_entries([entry_id])


@router.patch("/homework/{homework_id}", response_model=HomeworkRecord, summary="Update homework")
def update_homework(
    homework_id: str,
    req: UpdateHomeworkRequest,
    class_manager: ClassManagerDep,
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_account),
) -> HomeworkRecord:
    try:
        record = homework_manager.get_homework(homework_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    managed_class(class_manager, record.class_id, current_account)
    try:
        return homework_manager.update_homework(homework_id, req)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/homework/{homework_id}", summary="Delete homework")
def delete_homework(
    homework_id: str,
    class_manager: ClassManagerDep,
    homework_manager: HomeworkManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    try:
        record = homework_manager.get_homework(homework_id)
        managed_class(class_manager, record.class_id, current_account)
        homework_manager.delete_homework(homework_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Homework deleted successfully"}


# --- Attendance ---


@router.post(
    "/students/{entry_id}/attendance",
    response_model=AttendanceRecord,
    status_code=201,
    summary="Record attendance",
)
def create_attendance(
    entry_id: str,
    req: CreateAttendanceRequest,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_account),
) -> AttendanceRecord:
    managed_entry(roster_manager, class_manager, entry_id, current_account)
    try:
        return attendance_manager.create_attendance(entry_id, current_account.id, req)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.get(
    "/students/{entry_id}/attendance",
    response_model=List[AttendanceRecord],
    summary="List a student's attendance",
)
def list_attendance(
    entry_id: str,
    class_manager: ClassManagerDep,
    roster_manager: RosterManagerDep,
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_account),
) -> List[AttendanceRecord]:
    readable_entry(roster_manager, class_manager, entry_id, current_account)
    return attendance_manager.list_attendance_for_entries([entry_id])


@router.patch(
    "/attendance/{attendance_id}",
    response_model=AttendanceRecord,
    summary="Update attendance",
)
def update_attendance(
    attendance_id: str,
    req: UpdateAttendanceRequest,
    class_manager: ClassManagerDep,
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_account),
) -> AttendanceRecord:
    try:
        record = attendance_manager.get_attendance(attendance_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    managed_class(class_manager, record.class_id, current_account)
    try:
        return attendance_manager.update_attendance(attendance_id, req)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/attendance/{attendance_id}", summary="Delete attendance")
def delete_attendance(
    attendance_id: str,
    class_manager: ClassManagerDep,
    attendance_manager: AttendanceManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    try:
        record = attendance_manager.get_attendance(attendance_id)
        managed_class(class_manager, record.class_id, current_account)
        attendance_manager.delete_attendance(attendance_id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Attendance deleted successfully"}
