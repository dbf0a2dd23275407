"""Roster entry management.

This module owns roster entries and their embedded guardians: creating an
entry bumps its class counter and invites every guardian; deleting an entry
unlinks guardians best-effort, removes the entry with all of its homework and
attendance in one batch, and decrements the counter. Counters are only ever
moved by one, never recomputed.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from rosterlink.config import MAX_GUARDIANS_PER_ENTRY
from rosterlink.core.exceptions import (
    AccountNotFoundError,
    AlreadyEnrolledError,
    ClassNotFoundError,
    DuplicateGuardianError,
    EntryNotFoundError,
    GuardianLimitError,
    GuardianNotFoundError,
)
from rosterlink.models.collections import COLLECTION_ROSTER_ENTRIES
from rosterlink.schemas.invite import Invite
from rosterlink.schemas.roster import GuardianInfo, GuardianRef, RosterEntry
from rosterlink.utils.account_manager import AccountManager
from rosterlink.utils.class_manager import ClassManager
from rosterlink.utils.converters import model_to_entry, normalize_email, to_document
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, utc_now
from rosterlink.utils.invite_ledger import InviteLedger
from rosterlink.utils.link_cleanup import queue_entry_delete, unlink_guardians_from_entry

logger = logging.getLogger(__name__)


class RosterManager:
    """Manages roster entries and the guardians attached to them."""

    def __init__(self, db: Session, max_guardians: int = MAX_GUARDIANS_PER_ENTRY):
        """Initialize RosterManager.

        Args:
            db: SQLAlchemy Session.
            max_guardians: Guardian cap per entry.
        """
        self.store = DocumentStore(db)
        self.accounts = AccountManager(db)
        self.classes = ClassManager(db)
        self.ledger = InviteLedger(db)
        self.max_guardians = max_guardians

    # --- Reads ---

    def get_entry(self, entry_id: str) -> RosterEntry:
        doc = self.store.get(COLLECTION_ROSTER_ENTRIES, entry_id)
        if doc is None:
            raise EntryNotFoundError(entry_id)
        return model_to_entry(doc)

    def get_entries(self, entry_ids: Iterable[str]) -> List[RosterEntry]:
        """Entries for ids, skipping ones that no longer exist."""
        return [
            model_to_entry(d) for d in self.store.get_many(COLLECTION_ROSTER_ENTRIES, entry_ids)
        ]

    def list_entries(self, class_id: str) -> List[RosterEntry]:
        docs = self.store.where(COLLECTION_ROSTER_ENTRIES, "class_id", class_id)
        entries = [model_to_entry(d) for d in docs]
        entries.sort(key=lambda e: (e.last_name.lower(), e.first_name.lower()))
        return entries

    def search_entries(self, class_id: str, query: str) -> List[RosterEntry]:
        query = query.lower()
        return [
            e
            for e in self.list_entries(class_id)
            if query in e.first_name.lower() or query in e.last_name.lower()
        ]

    def find_entries_by_guardian_email(self, email: str) -> List[RosterEntry]:
        """Entries that currently list email as a guardian.

        Used by teachers to spot a child that is already enrolled elsewhere.
        """
        email = normalize_email(email)
        entries = self.get_entries(self.ledger.entry_ids_for_guardian_email(email))
        return [e for e in entries if e.find_guardian(email) is not None]

    # --- Writes ---

    def _check_guardians(self, entry_id: str, emails: List[str]) -> None:
        if len(emails) > self.max_guardians:
            raise GuardianLimitError(entry_id, self.max_guardians)
        seen = set()
        for email in emails:
            if email in seen:
                raise DuplicateGuardianError(email, entry_id)
            seen.add(email)

    def create_entry(
        self,
        class_id: str,
        owner_id: str,
        first_name: str,
        last_name: str,
        guardians: List[GuardianInfo],
    ) -> RosterEntry:
        """Create a roster entry, bump the class counter and invite guardians.

        Args:
            class_id: Class to enroll the child in.
            owner_id: Teacher account creating the entry.
            first_name: Child first name.
            last_name: Child last name.
            guardians: Up to the guardian cap of guardian contacts.

        Returns:
            The created RosterEntry.

        Raises:
            ClassNotFoundError: If the class does not exist.
            GuardianLimitError: If too many guardians are given.
            DuplicateGuardianError: If a guardian email is repeated.
        """
        self.classes.get_class(class_id)
        entry_id = self.store.new_id()
        emails = [normalize_email(g.email) for g in guardians]
        self._check_guardians(entry_id, emails)

        now = utc_now()
        entry = RosterEntry(
            id=entry_id,
            class_id=class_id,
            owner_id=owner_id,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            guardians=[
                GuardianRef(
                    first_name=g.first_name,
                    last_name=g.last_name,
                    email=email,
                    invited_at=now,
                )
                for g, email in zip(guardians, emails)
            ],
        )
        self.store.set(COLLECTION_ROSTER_ENTRIES, entry.id, to_document(entry))
        self.classes.increment_entry_count(class_id)
        for email in emails:
            self.ledger.create_invite(email, entry.id, owner_id)
        logger.info("Created entry %s in class %s", entry.id, class_id)
        return entry

    def update_entry(
        self,
        entry_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> RosterEntry:
        fields: Dict[str, Any] = {"updated_at": utc_now()}
        if first_name is not None:
            fields["first_name"] = first_name.strip()
        if last_name is not None:
            fields["last_name"] = last_name.strip()
        try:
            doc = self.store.update(COLLECTION_ROSTER_ENTRIES, entry_id, fields)
        except DocumentNotFoundError as exc:
            raise EntryNotFoundError(entry_id) from exc
        return model_to_entry(doc)

    def add_guardian(self, entry_id: str, guardian: GuardianInfo) -> GuardianRef:
        """Attach a pending guardian to an entry and invite them.

        The invite is written before the guardian ref. If the second write
        never happens, reconciliation ignores the invite because the entry
        carries no ref for that email.

        Raises:
            EntryNotFoundError: If the entry does not exist.
            DuplicateGuardianError: If the email is already a guardian.
            GuardianLimitError: If the entry already has the maximum.
        """
        email = normalize_email(guardian.email)
        entry = self.get_entry(entry_id)
        if entry.find_guardian(email) is not None:
            raise DuplicateGuardianError(email, entry_id)
        if len(entry.guardians) >= self.max_guardians:
            raise GuardianLimitError(entry_id, self.max_guardians)

        self.ledger.create_invite(email, entry_id, entry.owner_id)
        ref = GuardianRef(
            first_name=guardian.first_name,
            last_name=guardian.last_name,
            email=email,
            invited_at=utc_now(),
        )

        def mutate(data: Dict[str, Any]) -> bool:
            guardians = data.get("guardians") or []
            if any((g.get("email") or "").lower() == email for g in guardians):
                raise DuplicateGuardianError(email, entry_id)
            if len(guardians) >= self.max_guardians:
                raise GuardianLimitError(entry_id, self.max_guardians)
            guardians.append(ref.model_dump(mode="json"))
            data["guardians"] = guardians
            data["updated_at"] = utc_now()
            return True

        try:
            self.store.update_with(COLLECTION_ROSTER_ENTRIES, entry_id, mutate)
        except DocumentNotFoundError as exc:
            raise EntryNotFoundError(entry_id) from exc
        logger.info("Added guardian %s to entry %s", email, entry_id)
        return ref

    def remove_guardian(self, entry_id: str, email: str) -> GuardianRef:
        """Detach a guardian and unlink the entry from their account.

        Raises:
            EntryNotFoundError: If the entry does not exist.
            GuardianNotFoundError: If email is not a guardian of the entry.
        """
        email = normalize_email(email)
        removed: List[GuardianRef] = []

        def mutate(data: Dict[str, Any]) -> bool:
            guardians = data.get("guardians") or []
            kept = [g for g in guardians if (g.get("email") or "").lower() != email]
            if len(kept) == len(guardians):
                raise GuardianNotFoundError(email, entry_id)
            removed.extend(GuardianRef.model_validate(g) for g in guardians if g not in kept)
            data["guardians"] = kept
            data["updated_at"] = utc_now()
            return True

        try:
            self.store.update_with(COLLECTION_ROSTER_ENTRIES, entry_id, mutate)
        except DocumentNotFoundError as exc:
            raise EntryNotFoundError(entry_id) from exc

        unlink_guardians_from_entry(self.accounts, entry_id, removed)
        logger.info("Removed guardian %s from entry %s", email, entry_id)
        return removed[0]

    def resend_invites(self, entry_id: str) -> List[Invite]:
        """Backfill missing invites for the entry's pending guardians."""
        return self.ledger.ensure_invites_for_entry(self.get_entry(entry_id))

    def delete_entry(self, entry_id: str, class_id: str) -> int:
        """Delete an entry with its homework and attendance.

        Guardian unlinking is best-effort. The batch delete is not: if it
        fails the error propagates and the counter is left alone.

        Args:
            entry_id: Entry to delete.
            class_id: Class the entry belongs to.

        Returns:
            Number of homework and attendance records deleted.

        Raises:
            EntryNotFoundError: If the entry does not exist in that class.
        """
        entry = self.get_entry(entry_id)
        if entry.class_id != class_id:
            raise EntryNotFoundError(entry_id)

        unlink_guardians_from_entry(self.accounts, entry_id, entry.guardians)

        batch = self.store.batch()
        records = queue_entry_delete(self.store, batch, entry_id)
        batch.commit()

        try:
            self.classes.decrement_entry_count(class_id)
        except ClassNotFoundError:
            logger.warning("Class %s vanished before its counter was decremented", class_id)
        logger.info("Deleted entry %s and %d records", entry_id, records)
        return records

    def link_existing_entry_to_collection(
        self, entry_id: str, new_class_id: str, owner_id: str
    ) -> RosterEntry:
        """Enroll a child that already exists elsewhere into another class.

        Entries are never shared between classes, so this creates a new entry
        scoped to new_class_id with the same names and guardians. Guardians
        already linked to the source entry are linked to the new one right
        away; the others get a fresh invite.

        Args:
            entry_id: The existing entry for the child.
            new_class_id: Class to enroll the child in.
            owner_id: Teacher account performing the enrollment.

        Returns:
            The new RosterEntry.

        Raises:
            EntryNotFoundError: If the source entry does not exist.
            ClassNotFoundError: If the target class does not exist.
            AlreadyEnrolledError: If the child is already in the target class.
        """
        source = self.get_entry(entry_id)
        self.classes.get_class(new_class_id)
        root_id = source.source_entry_id or source.id
        if source.class_id == new_class_id:
            raise AlreadyEnrolledError(entry_id, new_class_id)
        for doc in self.store.where(COLLECTION_ROSTER_ENTRIES, "class_id", new_class_id):
            if root_id in (doc["id"], doc.get("source_entry_id")) or doc["id"] == entry_id:
                raise AlreadyEnrolledError(entry_id, new_class_id)

        now = utc_now()
        guardians = []
        linked_accounts = []
        for g in source.guardians:
            accepted = g.status == "accepted" and g.account_id is not None
            guardians.append(
                GuardianRef(
                    first_name=g.first_name,
                    last_name=g.last_name,
                    email=g.email,
                    account_id=g.account_id if accepted else None,
                    status="accepted" if accepted else "pending",
                    invited_at=now,
                )
            )
            if accepted:
                linked_accounts.append(g.account_id)

        entry = RosterEntry(
            id=self.store.new_id(),
            class_id=new_class_id,
            owner_id=owner_id,
            first_name=source.first_name,
            last_name=source.last_name,
            guardians=guardians,
            source_entry_id=root_id,
        )
        self.store.set(COLLECTION_ROSTER_ENTRIES, entry.id, to_document(entry))
        self.classes.increment_entry_count(new_class_id)

        for guardian in entry.guardians:
            if guardian.status == "pending":
                self.ledger.create_invite(guardian.email, entry.id, owner_id)
        for account_id in linked_accounts:
            try:
                self.accounts.link_entries(account_id, [entry.id])
            except AccountNotFoundError:
                logger.error("Guardian account %s missing while linking %s", account_id, entry.id)
        logger.info("Linked entry %s into class %s as %s", entry_id, new_class_id, entry.id)
        return entry
