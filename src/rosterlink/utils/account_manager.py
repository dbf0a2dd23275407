"""Account management utilities.

This module provides the account documents that mirror identity provider
users. Password handling and token issuance belong to the identity provider;
this module only stores profile data and the id sets the linking engine
maintains with set-union and set-remove writes.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from rosterlink.config import ACCOUNT_ROLES
from rosterlink.core.exceptions import AccountExistsError, AccountNotFoundError, InvalidRoleError
from rosterlink.models.collections import COLLECTION_ACCOUNTS
from rosterlink.schemas.account import Account, Identity
from rosterlink.utils.converters import model_to_account, normalize_email, to_document
from rosterlink.utils.document_store import DocumentNotFoundError, DocumentStore, utc_now

logger = logging.getLogger(__name__)


class AccountManager:
    """Manages account documents."""

    def __init__(self, db: Session):
        """Initialize AccountManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.store = DocumentStore(db)

    def create_account(
        self,
        identity: Identity,
        role: str,
        first_name: str,
        last_name: str,
    ) -> Account:
        """Create the account document for a newly signed-up identity.

        Args:
            identity: Identity provider user.
            role: 'teacher' or 'guardian'.
            first_name: First name.
            last_name: Last name.

        Returns:
            Created Account object.

        Raises:
            InvalidRoleError: If role is unknown.
            AccountExistsError: If the id or the email already has an account.
        """
        if role not in ACCOUNT_ROLES:
            raise InvalidRoleError(f"Invalid role: {role}. Must be one of {ACCOUNT_ROLES}.")
        if self.store.get(COLLECTION_ACCOUNTS, identity.account_id) is not None:
            raise AccountExistsError(f"Account '{identity.account_id}' already exists")
        if self.find_by_email(identity.email) is not None:
            raise AccountExistsError(f"An account for '{identity.email}' already exists")

        account = Account(
            id=identity.account_id,
            email=normalize_email(identity.email),
            role=role,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
        )
        self.store.set(COLLECTION_ACCOUNTS, account.id, to_document(account))
        logger.info("Created %s account: %s", role, account.id)
        return account

    def get_account(self, account_id: str) -> Account:
        """Get an account by id.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        doc = self.store.get(COLLECTION_ACCOUNTS, account_id)
        if doc is None:
            raise AccountNotFoundError(account_id)
        return model_to_account(doc)

    def find_by_email(self, email: str) -> Optional[Account]:
        """Get the account registered under email, if any."""
        docs = self.store.where(COLLECTION_ACCOUNTS, "email", normalize_email(email))
        if not docs:
            return None
        if len(docs) > 1:
            logger.warning("Multiple accounts share email %s, using the first", email)
        return model_to_account(docs[0])

    def get_accounts(self, account_ids: Iterable[str]) -> List[Account]:
        return [model_to_account(d) for d in self.store.get_many(COLLECTION_ACCOUNTS, account_ids)]

    def update_profile(
        self,
        account_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        notifications_enabled: Optional[bool] = None,
    ) -> Account:
        fields = {"updated_at": utc_now()}
        if first_name is not None:
            fields["first_name"] = first_name.strip()
        if last_name is not None:
            fields["last_name"] = last_name.strip()
        if notifications_enabled is not None:
            fields["notifications_enabled"] = notifications_enabled
        try:
            doc = self.store.update(COLLECTION_ACCOUNTS, account_id, fields)
        except DocumentNotFoundError as exc:
            raise AccountNotFoundError(account_id) from exc
        return model_to_account(doc)

    def set_notification_preference(self, account_id: str, enabled: bool) -> Account:
        return self.update_profile(account_id, notifications_enabled=enabled)

    def _union(self, account_id: str, field: str, values: List[str]) -> None:
        try:
            self.store.array_union(COLLECTION_ACCOUNTS, account_id, field, values)
        except DocumentNotFoundError as exc:
            raise AccountNotFoundError(account_id) from exc

    def _remove(self, account_id: str, field: str, value: str) -> None:
        try:
            self.store.array_remove(COLLECTION_ACCOUNTS, account_id, field, [value])
        except DocumentNotFoundError as exc:
            raise AccountNotFoundError(account_id) from exc

    def link_entries(self, account_id: str, entry_ids: List[str]) -> None:
        """Union entry ids into the guardian's linked set."""
        self._union(account_id, "linked_entry_ids", entry_ids)

    def unlink_entry(self, account_id: str, entry_id: str) -> None:
        self._remove(account_id, "linked_entry_ids", entry_id)

    def link_admin_classes(self, account_id: str, class_ids: List[str]) -> None:
        self._union(account_id, "admin_class_ids", class_ids)

    def unlink_admin_class(self, account_id: str, class_id: str) -> None:
        self._remove(account_id, "admin_class_ids", class_id)

    def add_owned_class(self, account_id: str, class_id: str) -> None:
        self._union(account_id, "class_ids", [class_id])

    def remove_owned_class(self, account_id: str, class_id: str) -> None:
        self._remove(account_id, "class_ids", class_id)
