"""Reconciliation engine.

Links accounts to the roster entries and classes they were invited to. The
store has no cross-document transactions, so every link is two independent
writes (flip the invite, flip the embedded ref) followed by one set-union on
the account. A run that dies half way is repaired by the next run, because
already-accepted invites are re-examined every time and each write is a
no-op when its target is already in the desired state.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rosterlink.config import REQUIRE_VERIFIED_EMAIL
from rosterlink.models.collections import COLLECTION_CLASSES, COLLECTION_ROSTER_ENTRIES
from rosterlink.schemas.account import Account, Identity
from rosterlink.schemas.invite import AdminInvite, Invite
from rosterlink.utils.account_manager import AccountManager
from rosterlink.utils.converters import normalize_email
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, utc_now
from rosterlink.utils.invite_ledger import InviteLedger

logger = logging.getLogger(__name__)

AnyInvite = Union[Invite, AdminInvite]


class ReconciliationEngine:
    """Converges accounts, rosters and admin lists against the invite ledger."""

    def __init__(self, db: Session, require_verified_email: bool = REQUIRE_VERIFIED_EMAIL):
        self.store = DocumentStore(db)
        self.ledger = InviteLedger(db)
        self.accounts = AccountManager(db)
        self.require_verified_email = require_verified_email

    def _link_ref(
        self,
        collection: str,
        doc_id: str,
        refs_field: str,
        email: str,
        account_id: str,
    ) -> bool:
        """Mark the embedded ref for email as accepted by account_id.

        Returns:
            True if the document carries a ref for email (whether or not this
            call had to change it), False if no such ref exists.

        Raises:
            DocumentNotFoundError: If the target document is gone.
        """
        matched = []

        def mutate(data: Dict[str, Any]) -> bool:
            changed = False
            for ref in data.get(refs_field) or []:
                if (ref.get("email") or "").lower() != email:
                    continue
                matched.append(ref)
                if ref.get("status") != "accepted" or ref.get("account_id") != account_id:
                    ref["status"] = "accepted"
                    ref["account_id"] = account_id
                    if not ref.get("accepted_at"):
                        ref["accepted_at"] = utc_now()
                    changed = True
            if changed:
                data["updated_at"] = utc_now()
            return changed

        self.store.update_with(collection, doc_id, mutate)
        if not matched:
            logger.info(
                "No %s ref for %s on %s/%s, invite ignored", refs_field, email, collection, doc_id
            )
        return bool(matched)

    def _reconcile(
        self,
        kind: str,
        invites: Sequence[AnyInvite],
        target_of: Callable[[AnyInvite], str],
        existing_ids: Iterable[str],
        accept: Callable[[str], bool],
        link: Callable[[str], bool],
    ) -> List[str]:
        existing = set(existing_ids or [])
        handled = set()
        newly_linked: List[str] = []
        for invite in invites:
            target_id = target_of(invite)
            if target_id in existing:
                continue
            try:
                if invite.status == "pending":
                    accept(invite.id)
                # accepted invites still get the mirror write
                if target_id in handled:
                    continue
                handled.add(target_id)
                if link(target_id):
                    newly_linked.append(target_id)
            except (DocumentNotFoundError, SQLAlchemyError) as exc:
                logger.warning("Skipping %s invite %s -> %s: %s", kind, invite.id, target_id, exc)
        return newly_linked

    def reconcile_guardian(
        self, account_id: str, email: str, existing_linked_ids: Iterable[str]
    ) -> List[str]:
        """Link a guardian account to every roster entry its email was invited to.

        Args:
            account_id: Guardian account id.
            email: The account's email (matched case-insensitively).
            existing_linked_ids: Entry ids the account is already linked to.

        Returns:
            Entry ids linked by this call. Empty when nothing changed.
        """
        email = normalize_email(email)
        newly_linked = self._reconcile(
            "guardian",
            self.ledger.invites_for_email(email),
            lambda invite: invite.entry_id,
            existing_linked_ids,
            lambda invite_id: self.ledger.accept_invite(invite_id, account_id),
            lambda entry_id: self._link_ref(
                COLLECTION_ROSTER_ENTRIES, entry_id, "guardians", email, account_id
            ),
        )
        if newly_linked:
            self.accounts.link_entries(account_id, newly_linked)
            logger.info("Linked guardian %s to entries %s", account_id, newly_linked)
        return newly_linked

    def reconcile_admin(
        self, account_id: str, email: str, existing_admin_ids: Iterable[str]
    ) -> List[str]:
        """Link a teacher account to every class its email was made admin of.

        Returns:
            Class ids linked by this call.
        """
        email = normalize_email(email)
        newly_linked = self._reconcile(
            "admin",
            self.ledger.admin_invites_for_email(email),
            lambda invite: invite.class_id,
            existing_admin_ids,
            lambda invite_id: self.ledger.accept_admin_invite(invite_id, account_id),
            lambda class_id: self._link_ref(
                COLLECTION_CLASSES, class_id, "admins", email, account_id
            ),
        )
        if newly_linked:
            self.accounts.link_admin_classes(account_id, newly_linked)
            logger.info("Linked admin %s to classes %s", account_id, newly_linked)
        return newly_linked

    def reconcile_account(self, account: Account) -> Tuple[Account, List[str]]:
        """Run the reconciliation that matches the account's role."""
        if account.role == "guardian":
            newly_linked = self.reconcile_guardian(
                account.id, account.email, account.linked_entry_ids
            )
        else:
            newly_linked = self.reconcile_admin(
                account.id, account.email, account.admin_class_ids
            )
        if newly_linked:
            account = self.accounts.get_account(account.id)
        return account, newly_linked

    def start_session(self, identity: Identity) -> Tuple[Account, List[str]]:
        """Reconcile on session start and return the fresh account.

        Raises:
            AccountNotFoundError: If the identity never completed signup.
        """
        account = self.accounts.get_account(identity.account_id)
        if self.require_verified_email and not identity.email_verified:
            logger.info("Email of %s not verified, reconciliation skipped", identity.account_id)
            return account, []
        return self.reconcile_account(account)
