"""Invite ledger.

Invites bridge the gap between "a guardian (or co-admin) is referenced by
email" and "that email has an account". They are written once, flipped from
pending to accepted at most once, and never deleted, so any reconciliation
work they describe can always be replayed.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from rosterlink.models.collections import COLLECTION_ADMIN_INVITES, COLLECTION_INVITES
from rosterlink.schemas.invite import AdminInvite, Invite
from rosterlink.schemas.roster import RosterEntry
from rosterlink.utils.converters import (
    model_to_admin_invite,
    model_to_invite,
    normalize_email,
    to_document,
)
from rosterlink.utils.document_store import DocumentStore, utc_now

logger = logging.getLogger(__name__)


class InviteLedger:
    """Append-only store of guardian and admin invites."""

    def __init__(self, db: Session):
        self.store = DocumentStore(db)

    def create_invite(self, email: str, entry_id: str, owner_id: str) -> Invite:
        """Record that email is expected to become a guardian of entry_id.

        Args:
            email: Guardian email (normalized to lowercase).
            entry_id: Target roster entry.
            owner_id: Teacher account that owns the entry.

        Returns:
            The created pending Invite.
        """
        invite = Invite(
            id=self.store.new_id(),
            email=normalize_email(email),
            entry_id=entry_id,
            owner_id=owner_id,
        )
        self.store.set(COLLECTION_INVITES, invite.id, to_document(invite))
        logger.info("Created invite %s for %s -> entry %s", invite.id, invite.email, entry_id)
        return invite

    def create_admin_invite(self, email: str, class_id: str, owner_id: str) -> AdminInvite:
        invite = AdminInvite(
            id=self.store.new_id(),
            email=normalize_email(email),
            class_id=class_id,
            owner_id=owner_id,
        )
        self.store.set(COLLECTION_ADMIN_INVITES, invite.id, to_document(invite))
        logger.info(
            "Created admin invite %s for %s -> class %s", invite.id, invite.email, class_id
        )
        return invite

    def invites_for_email(self, email: str) -> List[Invite]:
        """All guardian invites for email, pending and accepted alike."""
        docs = self.store.where(
            COLLECTION_INVITES, "email", normalize_email(email), order_by="created_at"
        )
        return [model_to_invite(d) for d in docs]

    def admin_invites_for_email(self, email: str) -> List[AdminInvite]:
        docs = self.store.where(
            COLLECTION_ADMIN_INVITES, "email", normalize_email(email), order_by="created_at"
        )
        return [model_to_admin_invite(d) for d in docs]

    def invites_for_entry(self, entry_id: str) -> List[Invite]:
        docs = self.store.where(
            COLLECTION_INVITES, "entry_id", entry_id, order_by="created_at"
        )
        return [model_to_invite(d) for d in docs]

    def _accept(self, collection: str, invite_id: str, account_id: str) -> bool:
        flipped = []

        def mutate(data: Dict[str, Any]) -> bool:
            if data.get("status") == "accepted":
                return False
            data["status"] = "accepted"
            data["accepted_at"] = utc_now()
            data["account_id"] = account_id
            flipped.append(invite_id)
            return True

        self.store.update_with(collection, invite_id, mutate)
        return bool(flipped)

    def accept_invite(self, invite_id: str, account_id: str) -> bool:
        """Flip a guardian invite to accepted.

        Returns:
            True if this call flipped it, False if it was already accepted.

        Raises:
            DocumentNotFoundError: If the invite does not exist.
        """
        return self._accept(COLLECTION_INVITES, invite_id, account_id)

    def accept_admin_invite(self, invite_id: str, account_id: str) -> bool:
        return self._accept(COLLECTION_ADMIN_INVITES, invite_id, account_id)

    def ensure_invites_for_entry(self, entry: RosterEntry) -> List[Invite]:
        """Create the missing invite for every pending guardian of entry.

        A pending guardian whose invite was never written (the process died
        between the two writes) can never be linked. Running this again is
        harmless: guardians that already have an invite are skipped.

        Returns:
            The invites created by this call.
        """
        invited = {invite.email for invite in self.invites_for_entry(entry.id)}
        created = []
        for guardian in entry.guardians:
            if guardian.status == "accepted" or guardian.email.lower() in invited:
                continue
            created.append(self.create_invite(guardian.email, entry.id, entry.owner_id))
        if created:
            logger.info("Backfilled %d invite(s) for entry %s", len(created), entry.id)
        return created

    def entry_ids_for_guardian_email(self, email: str) -> List[str]:
        """Entry ids a guardian email was ever invited to, oldest first."""
        entry_ids: List[str] = []
        for invite in self.invites_for_email(email):
            if invite.entry_id not in entry_ids:
                entry_ids.append(invite.entry_id)
        return entry_ids
