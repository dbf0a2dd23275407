"""Class management routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from rosterlink.api.routes.access import managed_class
from rosterlink.api.routes.auth import get_current_account, get_current_teacher
from rosterlink.api.routes.errors import to_http_exception
from rosterlink.core.dependencies import ClassManagerDep
from rosterlink.core.exceptions import RosterLinkError
from rosterlink.schemas.account import Account
from rosterlink.schemas.class_schema import (
    AddAdminRequest,
    AdminRef,
    ClassRoster,
    CreateClassRequest,
    UpdateClassRequest,
)

router = APIRouter(prefix="/api/classes", tags=["Class"])


@router.post("", response_model=ClassRoster, status_code=201, summary="Create a class")
def create_class(
    req: CreateClassRequest,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_teacher),
) -> ClassRoster:
    name = req.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Class name cannot be empty.",
        )
    try:
        return class_manager.create_class(name, current_account.id, req.description)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.get("", response_model=List[ClassRoster], summary="List classes")
def list_classes(
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_teacher),
) -> List[ClassRoster]:
    """Classes the teacher owns, followed by the ones they co-administer."""
    return class_manager.list_classes_for_account(current_account)


@router.get("/{class_id}", response_model=ClassRoster, summary="Get a class")
def get_class(
    class_id: str,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_account),
) -> ClassRoster:
    return managed_class(class_manager, class_id, current_account)


@router.patch("/{class_id}", response_model=ClassRoster, summary="Update a class")
def update_class(
    class_id: str,
    req: UpdateClassRequest,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_account),
) -> ClassRoster:
    managed_class(class_manager, class_id, current_account)
    if req.name is not None and not req.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Class name cannot be empty.",
        )
    try:
        return class_manager.update_class(
            class_id,
            name=req.name.strip() if req.name is not None else None,
            description=req.description,
        )
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/{class_id}", summary="Delete a class")
def delete_class(
    class_id: str,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    """Delete a class with all of its students and their records.

    Only the owner may do this; co-administrators get 403.
    """
    try:
        class_manager.delete_class(class_id, current_account.id)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Class deleted successfully"}


@router.post("/{class_id}/admins", response_model=AdminRef, summary="Add a co-administrator")
def add_admin(
    class_id: str,
    req: AddAdminRequest,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_account),
) -> AdminRef:
    """Add a co-administrator by email.

    Teachers that already have an account are linked immediately; other
    emails stay pending until that teacher signs up.

    Raises:
        HTTPException: 400 on self, duplicate or guardian emails; 403 if the
            caller does not own the class.
    """
    class_roster = managed_class(class_manager, class_id, current_account)
    if class_roster.owner_id != current_account.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the class owner can manage admins.",
        )
    try:
        return class_manager.add_admin(class_id, req.email)
    except RosterLinkError as exc:
        raise to_http_exception(exc)


@router.delete("/{class_id}/admins/{email}", summary="Remove a co-administrator")
def remove_admin(
    class_id: str,
    email: str,
    class_manager: ClassManagerDep,
    current_account: Account = Depends(get_current_account),
) -> dict:
    class_roster = managed_class(class_manager, class_id, current_account)
    if class_roster.owner_id != current_account.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the class owner can manage admins.",
        )
    try:
        class_manager.remove_admin(class_id, email)
    except RosterLinkError as exc:
        raise to_http_exception(exc)
    return {"success": True, "message": "Admin removed successfully"}
