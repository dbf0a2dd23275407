"""Translation of service exceptions into HTTP errors."""

from typing import List, Tuple, Type

from fastapi import HTTPException, status

from rosterlink.core.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    AdminNotFoundError,
    ClassNotFoundError,
    EntryNotFoundError,
    GuardianNotFoundError,
    PermissionDeniedError,
    RecordNotFoundError,
    RosterLinkError,
    ValidationError,
)

# first match wins
_STATUS_BY_ERROR: List[Tuple[Type[Exception], int]] = [
    (AccountExistsError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (EntryNotFoundError, status.HTTP_404_NOT_FOUND),
    (ClassNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
    (GuardianNotFoundError, status.HTTP_404_NOT_FOUND),
    (AdminNotFoundError, status.HTTP_404_NOT_FOUND),
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
]


def to_http_exception(exc: RosterLinkError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
