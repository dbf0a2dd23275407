"""Homework record management.

Homework is leaf data owned by one roster entry. Creating a record emits the
new-homework notification to the entry's linked guardians.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from rosterlink.core.exceptions import EntryNotFoundError, RecordNotFoundError
from rosterlink.models.collections import (
    COLLECTION_ACCOUNTS,
    COLLECTION_HOMEWORK,
    COLLECTION_ROSTER_ENTRIES,
)
from rosterlink.schemas.records import CreateHomeworkRequest, HomeworkRecord, UpdateHomeworkRequest
from rosterlink.schemas.roster import RosterEntry
from rosterlink.utils.converters import from_document, model_to_entry, to_document
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, chunked, utc_now
from rosterlink.utils.notifier import HomeworkNotifier, get_notifier

logger = logging.getLogger(__name__)


class HomeworkManager:
    """Manages homework records."""

    def __init__(self, db: Session, notifier: Optional[HomeworkNotifier] = None):
        self.store = DocumentStore(db)
        self.notifier = notifier or get_notifier()

    def _get_entry(self, entry_id: str) -> RosterEntry:
        doc = self.store.get(COLLECTION_ROSTER_ENTRIES, entry_id)
        if doc is None:
            raise EntryNotFoundError(entry_id)
        return model_to_entry(doc)

    def create_homework(
        self, entry_id: str, teacher_id: str, req: CreateHomeworkRequest
    ) -> HomeworkRecord:
        """Assign homework to one roster entry and notify its guardians.

        Raises:
            EntryNotFoundError: If the entry does not exist.
        """
        entry = self._get_entry(entry_id)
        record = HomeworkRecord(
            id=self.store.new_id(),
            entry_id=entry.id,
            class_id=entry.class_id,
            teacher_id=teacher_id,
            title=req.title,
            description=req.description,
            due_date=req.due_date,
            notes=req.notes,
        )
        self.store.set(COLLECTION_HOMEWORK, record.id, to_document(record))
        logger.info("Created homework %s for entry %s", record.id, entry.id)
        self._notify(entry, record)
        return record

    def _notify(self, entry: RosterEntry, record: HomeworkRecord) -> None:
        account_ids = [
            g.account_id for g in entry.guardians if g.status == "accepted" and g.account_id
        ]
        if not account_ids:
            logger.info("No linked guardians to notify for entry %s", entry.id)
            return
        targets = [
            doc["id"]
            for doc in self.store.get_many(COLLECTION_ACCOUNTS, account_ids)
            if doc.get("notifications_enabled", True)
        ]
        if not targets:
            return
        try:
            self.notifier.notify_new_homework(entry.full_name, record.title, targets)
        except Exception:
            logger.exception("Homework notification failed for %s", record.id)

    def get_homework(self, homework_id: str) -> HomeworkRecord:
        doc = self.store.get(COLLECTION_HOMEWORK, homework_id)
        if doc is None:
            raise RecordNotFoundError(homework_id)
        return from_document(HomeworkRecord, doc)

    def list_homework_for_entries(self, entry_ids: Iterable[str]) -> List[HomeworkRecord]:
        """Homework of all given entries, newest first."""
        records = []
        for batch in chunked(set(entry_ids), self.store.in_query_limit):
            for doc in self.store.where_in(COLLECTION_HOMEWORK, "entry_id", batch):
                records.append(from_document(HomeworkRecord, doc))
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def update_homework(self, homework_id: str, req: UpdateHomeworkRequest) -> HomeworkRecord:
        fields = req.model_dump(exclude_unset=True)
        fields["updated_at"] = utc_now()
        if fields.get("status") == "completed":
            fields["completed_at"] = utc_now()
        try:
            doc = self.store.update(COLLECTION_HOMEWORK, homework_id, fields)
        except DocumentNotFoundError as exc:
            raise RecordNotFoundError(homework_id) from exc
        return from_document(HomeworkRecord, doc)

    def delete_homework(self, homework_id: str) -> None:
        self.get_homework(homework_id)
        self.store.delete(COLLECTION_HOMEWORK, homework_id)
        logger.info("Deleted homework %s", homework_id)
