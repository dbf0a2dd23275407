"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes. Every
manager is built per request around the request-scoped DB session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from rosterlink.core.database import get_db
from rosterlink.utils import account_manager
from rosterlink.utils import attendance_manager
from rosterlink.utils import class_manager
from rosterlink.utils import homework_manager
from rosterlink.utils import invite_ledger
from rosterlink.utils import notifier
from rosterlink.utils import reconciliation
from rosterlink.utils import roster_manager


def get_account_manager(db: Session = Depends(get_db)) -> account_manager.AccountManager:
    """Get AccountManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        AccountManager instance.
    """
    return account_manager.AccountManager(db)


def get_class_manager(db: Session = Depends(get_db)) -> class_manager.ClassManager:
    """Get ClassManager instance with request-scoped DB session."""
    return class_manager.ClassManager(db)


def get_roster_manager(db: Session = Depends(get_db)) -> roster_manager.RosterManager:
    """Get RosterManager instance with request-scoped DB session."""
    return roster_manager.RosterManager(db)


def get_invite_ledger(db: Session = Depends(get_db)) -> invite_ledger.InviteLedger:
    return invite_ledger.InviteLedger(db)


def get_reconciliation_engine(
    db: Session = Depends(get_db),
) -> reconciliation.ReconciliationEngine:
    """Get ReconciliationEngine instance with request-scoped DB session."""
    return reconciliation.ReconciliationEngine(db)


def get_homework_notifier() -> notifier.HomeworkNotifier:
    """Get the process-wide homework notifier.

    Returns:
        HomeworkNotifier instance (singleton).
    """
    return notifier.get_notifier()


def get_homework_manager(
    db: Session = Depends(get_db),
    homework_notifier: notifier.HomeworkNotifier = Depends(get_homework_notifier),
) -> homework_manager.HomeworkManager:
    """Get HomeworkManager instance with request-scoped DB session."""
    return homework_manager.HomeworkManager(db, homework_notifier)


def get_attendance_manager(
    db: Session = Depends(get_db),
) -> attendance_manager.AttendanceManager:
    return attendance_manager.AttendanceManager(db)


# Type aliases for dependency injection
AccountManagerDep = Annotated[
    account_manager.AccountManager, Depends(get_account_manager)
]
ClassManagerDep = Annotated[
    class_manager.ClassManager, Depends(get_class_manager)
]
RosterManagerDep = Annotated[
    roster_manager.RosterManager, Depends(get_roster_manager)
]
InviteLedgerDep = Annotated[
    invite_ledger.InviteLedger, Depends(get_invite_ledger)
]
ReconciliationEngineDep = Annotated[
    reconciliation.ReconciliationEngine, Depends(get_reconciliation_engine)
]
HomeworkNotifierDep = Annotated[
    notifier.HomeworkNotifier, Depends(get_homework_notifier)
]
HomeworkManagerDep = Annotated[
    homework_manager.HomeworkManager, Depends(get_homework_manager)
]
AttendanceManagerDep = Annotated[
    attendance_manager.AttendanceManager, Depends(get_attendance_manager)
]
