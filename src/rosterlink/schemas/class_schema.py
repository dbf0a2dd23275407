"""Class schema definitions."""

from datetime import datetime
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field, field_validator

from rosterlink.schemas.roster import LinkStatus


class AdminRef(BaseModel):
    """A co-administrator embedded in a class."""

    email: str
    account_id: Optional[str] = None
    status: LinkStatus = "pending"
    invited_at: Optional[str] = None
    accepted_at: Optional[str] = None


class ClassRoster(BaseModel):
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    entry_count: int = Field(
        default=0,
        description="Denormalized number of roster entries in this class.",
    )
    admins: List[AdminRef] = Field(default_factory=list)
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())

    def find_admin(self, email: str) -> Optional[AdminRef]:
        email = email.lower()
        for admin in self.admins:
            if admin.email.lower() == email:
                return admin
        return None


class CreateClassRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class UpdateClassRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class AddAdminRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Please enter a valid email")
        return value
