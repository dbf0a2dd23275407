"""Conversions between stored documents and pydantic schemas."""

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel

from rosterlink.schemas.account import Account
from rosterlink.schemas.class_schema import ClassRoster
from rosterlink.schemas.invite import AdminInvite, Invite
from rosterlink.schemas.roster import RosterEntry

M = TypeVar("M", bound=BaseModel)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_document(model: BaseModel) -> Dict[str, Any]:
    """Dump a schema to the dict stored in the document's data column."""
    return model.model_dump(exclude={"id"}, mode="json")


def from_document(schema: Type[M], doc: Dict[str, Any]) -> M:
    return schema.model_validate(doc)


def from_documents(schema: Type[M], docs: List[Dict[str, Any]]) -> List[M]:
    return [schema.model_validate(doc) for doc in docs]


def model_to_account(doc: Dict[str, Any]) -> Account:
    return from_document(Account, doc)


def model_to_entry(doc: Dict[str, Any]) -> RosterEntry:
    return from_document(RosterEntry, doc)


def model_to_class(doc: Dict[str, Any]) -> ClassRoster:
    return from_document(ClassRoster, doc)


def model_to_invite(doc: Dict[str, Any]) -> Invite:
    return from_document(Invite, doc)


def model_to_admin_invite(doc: Dict[str, Any]) -> AdminInvite:
    return from_document(AdminInvite, doc)
