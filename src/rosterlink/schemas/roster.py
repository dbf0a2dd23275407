"""Roster entry schema definitions."""

from datetime import datetime
from typing import List, Literal, Optional

import pytz
from pydantic import BaseModel, Field, field_validator

LinkStatus = Literal["pending", "accepted"]


class GuardianInfo(BaseModel):
    """Guardian contact details as typed in by a teacher."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Please enter a valid email")
        return value


class GuardianRef(GuardianInfo):
    """A guardian embedded in a roster entry."""

    account_id: Optional[str] = Field(
        default=None,
        description="Linked account id once the guardian has signed up.",
    )
    status: LinkStatus = "pending"
    invited_at: Optional[str] = None


class RosterEntry(BaseModel):
    """One child's enrollment in one class."""

    id: str
    class_id: str
    owner_id: str
    first_name: str
    last_name: str
    guardians: List[GuardianRef] = Field(default_factory=list)
    source_entry_id: Optional[str] = Field(
        default=None,
        description="Entry this one was cloned from when the same child joined another class.",
    )
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def find_guardian(self, email: str) -> Optional[GuardianRef]:
        email = email.lower()
        for guardian in self.guardians:
            if guardian.email.lower() == email:
                return guardian
        return None


class CreateEntryRequest(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    guardians: List[GuardianInfo] = Field(min_length=1, max_length=2)


class UpdateEntryRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LinkEntryRequest(BaseModel):
    """Enroll an already known child into another class."""

    entry_id: str
