"""Class management utilities."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from rosterlink.core.exceptions import (
    AccountNotFoundError,
    AdminNotFoundError,
    ClassNotFoundError,
    DuplicateAdminError,
    InvalidRoleError,
    PermissionDeniedError,
    SelfAdminError,
)
from rosterlink.models.collections import COLLECTION_CLASSES, COLLECTION_ROSTER_ENTRIES
from rosterlink.schemas.account import Account
from rosterlink.schemas.class_schema import AdminRef, ClassRoster
from rosterlink.utils.account_manager import AccountManager
from rosterlink.utils.converters import model_to_class, model_to_entry, normalize_email, to_document
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, utc_now
from rosterlink.utils.invite_ledger import InviteLedger
from rosterlink.utils.link_cleanup import (
    queue_entry_delete,
    unlink_admins_from_class,
    unlink_guardians_from_entry,
)

logger = logging.getLogger(__name__)


class ClassManager:
    """Manages classes, their entry counters and their administrators."""

    def __init__(self, db: Session):
        self.store = DocumentStore(db)
        self.accounts = AccountManager(db)
        self.ledger = InviteLedger(db)

    def create_class(
        self, name: str, owner_id: str, description: Optional[str] = None
    ) -> ClassRoster:
        """Create a new class and record it on the owner's account."""
        class_roster = ClassRoster(
            id=self.store.new_id(),
            owner_id=owner_id,
            name=name,
            description=description,
        )
        self.store.set(COLLECTION_CLASSES, class_roster.id, to_document(class_roster))
        self.accounts.add_owned_class(owner_id, class_roster.id)
        logger.info("Created class %s for owner %s", class_roster.id, owner_id)
        return class_roster

    def get_class(self, class_id: str) -> ClassRoster:
        doc = self.store.get(COLLECTION_CLASSES, class_id)
        if doc is None:
            raise ClassNotFoundError(class_id)
        return model_to_class(doc)

    def list_classes_for_owner(self, owner_id: str) -> List[ClassRoster]:
        docs = self.store.where(
            COLLECTION_CLASSES, "owner_id", owner_id, order_by="created_at", descending=True
        )
        return [model_to_class(d) for d in docs]

    def list_classes_by_ids(self, class_ids: Iterable[str]) -> List[ClassRoster]:
        return [model_to_class(d) for d in self.store.get_many(COLLECTION_CLASSES, class_ids)]

    def list_classes_for_account(self, account: Account) -> List[ClassRoster]:
        """Owned classes first, then classes the account co-administers."""
        owned = self.list_classes_for_owner(account.id)
        owned_ids = {c.id for c in owned}
        administered = self.list_classes_by_ids(
            [cid for cid in account.admin_class_ids if cid not in owned_ids]
        )
        return owned + administered

    def update_class(
        self,
        class_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ClassRoster:
        fields: Dict[str, Any] = {"updated_at": utc_now()}
        if name is not None:
            fields["name"] = name
        if description is not None:
            fields["description"] = description
        try:
            doc = self.store.update(COLLECTION_CLASSES, class_id, fields)
        except DocumentNotFoundError as exc:
            raise ClassNotFoundError(class_id) from exc
        return model_to_class(doc)

    def can_manage(self, class_roster: ClassRoster, account: Account) -> bool:
        """Owner or accepted co-administrator."""
        if class_roster.owner_id == account.id:
            return True
        admin = class_roster.find_admin(account.email)
        if admin is not None and admin.status == "accepted" and admin.account_id == account.id:
            return True
        return class_roster.id in account.admin_class_ids

    def require_manage(self, class_id: str, account: Account) -> ClassRoster:
        """Get a class the account may manage.

        Raises:
            ClassNotFoundError: If the class does not exist.
            PermissionDeniedError: If the account is neither owner nor admin.
        """
        class_roster = self.get_class(class_id)
        if not self.can_manage(class_roster, account):
            raise PermissionDeniedError("Only class owners and admins can manage this class.")
        return class_roster

    # --- Denormalized entry counter ---

    def increment_entry_count(self, class_id: str) -> None:
        try:
            self.store.increment(COLLECTION_CLASSES, class_id, "entry_count", 1)
        except DocumentNotFoundError as exc:
            raise ClassNotFoundError(class_id) from exc

    def decrement_entry_count(self, class_id: str) -> None:
        try:
            self.store.increment(COLLECTION_CLASSES, class_id, "entry_count", -1)
        except DocumentNotFoundError as exc:
            raise ClassNotFoundError(class_id) from exc

    # --- Administrators ---

    def add_admin(self, class_id: str, email: str) -> AdminRef:
        """Add a co-administrator to a class.

        An email that already has a teacher account is linked immediately.
        Otherwise the admin stays pending and an admin invite is written for
        reconciliation to pick up when that email signs up.

        Args:
            class_id: Class ID.
            email: Administrator email.

        Returns:
            The AdminRef stored on the class.

        Raises:
            ClassNotFoundError: If the class does not exist.
            SelfAdminError: If email belongs to the class owner.
            DuplicateAdminError: If email is already an admin.
            InvalidRoleError: If email belongs to a guardian account.
        """
        email = normalize_email(email)
        class_roster = self.get_class(class_id)
        if class_roster.find_admin(email) is not None:
            raise DuplicateAdminError(email, class_id)

        existing = self.accounts.find_by_email(email)
        if existing is not None and existing.id == class_roster.owner_id:
            raise SelfAdminError("You cannot add yourself as an admin")
        if existing is None:
            try:
                owner = self.accounts.get_account(class_roster.owner_id)
            except AccountNotFoundError:
                owner = None
            if owner is not None and owner.email == email:
                raise SelfAdminError("You cannot add yourself as an admin")
        if existing is not None and existing.role != "teacher":
            raise InvalidRoleError("Only teacher accounts can administer a class")

        now = utc_now()
        if existing is not None:
            admin = AdminRef(
                email=email,
                account_id=existing.id,
                status="accepted",
                invited_at=now,
                accepted_at=now,
            )
        else:
            self.ledger.create_admin_invite(email, class_id, class_roster.owner_id)
            admin = AdminRef(email=email, status="pending", invited_at=now)

        def mutate(data: Dict[str, Any]) -> bool:
            admins = data.get("admins") or []
            if any((a.get("email") or "").lower() == email for a in admins):
                raise DuplicateAdminError(email, class_id)
            admins.append(admin.model_dump(mode="json"))
            data["admins"] = admins
            data["updated_at"] = now
            return True

        try:
            self.store.update_with(COLLECTION_CLASSES, class_id, mutate)
        except DocumentNotFoundError as exc:
            raise ClassNotFoundError(class_id) from exc

        if existing is not None:
            self.accounts.link_admin_classes(existing.id, [class_id])
        logger.info("Added %s admin %s to class %s", admin.status, email, class_id)
        return admin

    def remove_admin(self, class_id: str, email: str) -> AdminRef:
        """Remove a co-administrator and unlink the class from their account.

        Raises:
            ClassNotFoundError: If the class does not exist.
            AdminNotFoundError: If email is not an admin of the class.
        """
        email = normalize_email(email)
        removed: List[AdminRef] = []

        def mutate(data: Dict[str, Any]) -> bool:
            admins = data.get("admins") or []
            kept = [a for a in admins if (a.get("email") or "").lower() != email]
            if len(kept) == len(admins):
                raise AdminNotFoundError(email, class_id)
            removed.extend(AdminRef.model_validate(a) for a in admins if a not in kept)
            data["admins"] = kept
            data["updated_at"] = utc_now()
            return True

        try:
            self.store.update_with(COLLECTION_CLASSES, class_id, mutate)
        except DocumentNotFoundError as exc:
            raise ClassNotFoundError(class_id) from exc

        unlink_admins_from_class(self.accounts, class_id, removed)
        logger.info("Removed admin %s from class %s", email, class_id)
        return removed[0]

    # --- Deletion ---

    def delete_class(self, class_id: str, owner_id: str) -> None:
        """Delete a class and everything enrolled in it.

        Only the class owner can delete the class. Guardian and admin links
        are removed best-effort first; then every roster entry of the class,
        their homework and attendance, and the class itself are deleted in one
        batch.

        Args:
            class_id: Class ID to delete.
            owner_id: Owner ID (must match class owner).

        Raises:
            ClassNotFoundError: If class not found.
            PermissionDeniedError: If user is not the owner.
        """
        class_roster = self.get_class(class_id)
        if class_roster.owner_id != owner_id:
            raise PermissionDeniedError("Only class owner can delete the class")

        entries = [
            model_to_entry(d)
            for d in self.store.where(COLLECTION_ROSTER_ENTRIES, "class_id", class_id)
        ]
        for entry in entries:
            unlink_guardians_from_entry(self.accounts, entry.id, entry.guardians)
        unlink_admins_from_class(self.accounts, class_id, class_roster.admins)

        batch = self.store.batch()
        records = 0
        for entry in entries:
            records += queue_entry_delete(self.store, batch, entry.id)
        batch.delete(COLLECTION_CLASSES, class_id)
        batch.commit()

        try:
            self.accounts.remove_owned_class(owner_id, class_id)
        except AccountNotFoundError:
            logger.warning("Owner %s of deleted class %s has no account", owner_id, class_id)
        logger.info(
            "Deleted class %s with %d entries and %d records", class_id, len(entries), records
        )
