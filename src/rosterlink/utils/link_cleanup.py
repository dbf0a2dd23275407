"""Best-effort unlinking and cascade helpers.

Removing a guardian or admin ref and removing the matching id from the
account are two separate writes. The account side is best-effort: failures
are logged and the loop moves on.
"""

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from rosterlink.core.exceptions import AccountNotFoundError
from rosterlink.models.collections import (
    COLLECTION_ATTENDANCE,
    COLLECTION_HOMEWORK,
    COLLECTION_ROSTER_ENTRIES,
)
from rosterlink.schemas.class_schema import AdminRef
from rosterlink.schemas.roster import GuardianRef
from rosterlink.utils.account_manager import AccountManager
from rosterlink.utils.document_store import DocumentStore, WriteBatch

logger = logging.getLogger(__name__)


def unlink_guardians_from_entry(
    accounts: AccountManager, entry_id: str, guardians: Iterable[GuardianRef]
) -> None:
    """Remove entry_id from every linked guardian's account."""
    for guardian in guardians:
        if not guardian.account_id:
            continue
        try:
            accounts.unlink_entry(guardian.account_id, entry_id)
        except (AccountNotFoundError, SQLAlchemyError) as exc:
            logger.error(
                "Failed to unlink guardian %s from entry %s: %s",
                guardian.account_id,
                entry_id,
                exc,
            )


def unlink_admins_from_class(
    accounts: AccountManager, class_id: str, admins: Iterable[AdminRef]
) -> None:
    """Remove class_id from every linked admin's account."""
    for admin in admins:
        if not admin.account_id:
            continue
        try:
            accounts.unlink_admin_class(admin.account_id, class_id)
        except (AccountNotFoundError, SQLAlchemyError) as exc:
            logger.error(
                "Failed to unlink admin %s from class %s: %s", admin.account_id, class_id, exc
            )


def queue_entry_delete(store: DocumentStore, batch: WriteBatch, entry_id: str) -> int:
    """Add an entry and all of its homework and attendance to a delete batch.

    Returns:
        Number of dependent records queued (the entry itself excluded).
    """
    queued = 0
    for collection in (COLLECTION_HOMEWORK, COLLECTION_ATTENDANCE):
        for doc in store.where(collection, "entry_id", entry_id):
            batch.delete(collection, doc["id"])
            queued += 1
    batch.delete(COLLECTION_ROSTER_ENTRIES, entry_id)
    return queued
