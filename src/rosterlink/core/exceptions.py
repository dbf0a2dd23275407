"""Custom exception classes for the roster linking service.

This module defines application-specific exceptions following Google Python
Style Guide. Validation errors are surfaced to the caller and never retried;
lookup misses are hard failures for user-driven mutations and are swallowed
(logged) only on best-effort cleanup paths.
"""


class RosterLinkError(Exception):
    """Base exception for all roster linking errors."""

    pass


class ValidationError(RosterLinkError):
    """Raised when a requested mutation violates a roster rule."""

    pass


class DuplicateGuardianError(ValidationError):
    """Raised when a guardian email is already attached to a roster entry."""

    def __init__(self, email: str, entry_id: str):
        """Initialize the exception.

        Args:
            email: The duplicated guardian email.
            entry_id: The roster entry that already carries it.
        """
        self.email = email
        self.entry_id = entry_id
        super().__init__(f"Guardian '{email}' is already linked to entry '{entry_id}'")


class GuardianLimitError(ValidationError):
    """Raised when a roster entry already has the maximum number of guardians."""

    def __init__(self, entry_id: str, limit: int):
        self.entry_id = entry_id
        self.limit = limit
        super().__init__(f"Entry '{entry_id}' already has {limit} guardians")


class SelfAdminError(ValidationError):
    """Raised when a class owner tries to add themselves as administrator."""

    pass


class DuplicateAdminError(ValidationError):
    """Raised when an email is already an administrator of a class."""

    def __init__(self, email: str, class_id: str):
        self.email = email
        self.class_id = class_id
        super().__init__(f"'{email}' is already an admin for class '{class_id}'")


class AlreadyEnrolledError(ValidationError):
    """Raised when a child is already enrolled in the target class."""

    def __init__(self, entry_id: str, class_id: str):
        self.entry_id = entry_id
        self.class_id = class_id
        super().__init__(f"Entry '{entry_id}' is already enrolled in class '{class_id}'")


class AccountExistsError(ValidationError):
    """Raised when an account document already exists for an id or email."""

    pass


class InvalidRoleError(ValidationError):
    """Raised when an account role is unknown or wrong for the operation."""

    pass


class EntryNotFoundError(RosterLinkError):
    """Raised when a requested roster entry cannot be found."""

    def __init__(self, entry_id: str):
        """Initialize the exception.

        Args:
            entry_id: The ID of the roster entry that was not found.
        """
        self.entry_id = entry_id
        super().__init__(f"Roster entry '{entry_id}' not found")


class ClassNotFoundError(RosterLinkError):
    """Raised when a requested class cannot be found."""

    def __init__(self, class_id: str):
        self.class_id = class_id
        super().__init__(f"Class '{class_id}' not found")


class AccountNotFoundError(RosterLinkError):
    """Raised when a requested account cannot be found."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account '{account_id}' not found")


class GuardianNotFoundError(RosterLinkError):
    """Raised when a guardian email is not attached to a roster entry."""

    def __init__(self, email: str, entry_id: str):
        self.email = email
        self.entry_id = entry_id
        super().__init__(f"Guardian '{email}' not found on entry '{entry_id}'")


class AdminNotFoundError(RosterLinkError):
    """Raised when an email is not an administrator of a class."""

    def __init__(self, email: str, class_id: str):
        self.email = email
        self.class_id = class_id
        super().__init__(f"Admin '{email}' not found on class '{class_id}'")


class RecordNotFoundError(RosterLinkError):
    """Raised when a homework or attendance record cannot be found."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' not found")


class PermissionDeniedError(RosterLinkError):
    """Raised when an account may not act on a class or entry."""

    pass
