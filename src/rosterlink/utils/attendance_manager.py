"""Attendance record management."""

import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from rosterlink.core.exceptions import EntryNotFoundError, RecordNotFoundError
from rosterlink.models.collections import COLLECTION_ATTENDANCE, COLLECTION_ROSTER_ENTRIES
from rosterlink.schemas.records import (
    AttendanceRecord,
    CreateAttendanceRequest,
    UpdateAttendanceRequest,
)
from rosterlink.utils.converters import from_document, to_document
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, chunked, utc_now

logger = logging.getLogger(__name__)


class AttendanceManager:
    """Manages attendance records."""

    def __init__(self, db: Session):
        self.store = DocumentStore(db)

    def create_attendance(
        self, entry_id: str, teacher_id: str, req: CreateAttendanceRequest
    ) -> AttendanceRecord:
        entry = self.store.get(COLLECTION_ROSTER_ENTRIES, entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        record = AttendanceRecord(
            id=self.store.new_id(),
            entry_id=entry_id,
            class_id=entry["class_id"],
            teacher_id=teacher_id,
            date=req.date,
            status=req.status,
            notes=req.notes,
        )
        self.store.set(COLLECTION_ATTENDANCE, record.id, to_document(record))
        logger.info("Recorded %s attendance for entry %s on %s", req.status, entry_id, req.date)
        return record

    def get_attendance(self, attendance_id: str) -> AttendanceRecord:
        doc = self.store.get(COLLECTION_ATTENDANCE, attendance_id)
        if doc is None:
            raise RecordNotFoundError(attendance_id)
        return from_document(AttendanceRecord, doc)

    def list_attendance_for_entries(self, entry_ids: Iterable[str]) -> List[AttendanceRecord]:
        """Attendance of all given entries, most recent day first."""
        records = []
        for batch in chunked(set(entry_ids), self.store.in_query_limit):
            for doc in self.store.where_in(COLLECTION_ATTENDANCE, "entry_id", batch):
                records.append(from_document(AttendanceRecord, doc))
        records.sort(key=lambda r: (r.date, r.created_at), reverse=True)
        return records

    def update_attendance(
        self, attendance_id: str, req: UpdateAttendanceRequest
    ) -> AttendanceRecord:
        fields = req.model_dump(exclude_unset=True)
        fields["updated_at"] = utc_now()
        try:
            doc = self.store.update(COLLECTION_ATTENDANCE, attendance_id, fields)
        except DocumentNotFoundError as exc:
            raise RecordNotFoundError(attendance_id) from exc
        return from_document(AttendanceRecord, doc)

    def delete_attendance(self, attendance_id: str) -> None:
        self.get_attendance(attendance_id)
        self.store.delete(COLLECTION_ATTENDANCE, attendance_id)
